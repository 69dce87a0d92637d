"""
Management command to import a demo content document.

Usage:
    python manage.py import_demo_data /path/to/data.json
    python manage.py import_demo_data --theme starter --user admin
    python manage.py import_demo_data data.json --strict
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from cms.exceptions import CMSError, PartialBatchFailure
from cms.services.demo_importer import (
    import_demo_document,
    load_demo_document_file,
    load_theme_demo_document,
)


class Command(BaseCommand):
    help = "Import demo content (pages, posts, products, menus, settings, images)"

    def add_arguments(self, parser):
        parser.add_argument("json_file", nargs="?", help="Path to a demo data JSON document")
        parser.add_argument("--theme", help="Import the demo data bundled with this theme")
        parser.add_argument("--user", help="Username recorded as author/uploader")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit with an error if any item failed to import",
        )

    def handle(self, *args, **options):
        if bool(options["json_file"]) == bool(options["theme"]):
            raise CommandError("Pass either a JSON file or --theme, not both")

        acting_user = None
        if options["user"]:
            User = get_user_model()
            try:
                acting_user = User.objects.get(username=options["user"])
            except User.DoesNotExist:
                raise CommandError(f"User not found: {options['user']}")

        try:
            if options["theme"]:
                document = load_theme_demo_document(options["theme"])
            else:
                document = load_demo_document_file(options["json_file"])
        except CMSError as e:
            raise CommandError(str(e))

        def report_progress(progress):
            line = f"  [{progress['completed']}/{progress['total']}] {progress['current']}"
            if progress.get("error"):
                self.stdout.write(self.style.WARNING(f"{line}: {progress['error']}"))
            else:
                self.stdout.write(line)

        result = import_demo_document(
            document, acting_user=acting_user, on_progress=report_progress
        )

        self.stdout.write("")
        self.stdout.write("=" * 60)
        self.stdout.write("Import complete!")
        for kind, count in result.as_dict().items():
            self.stdout.write(f"  {kind}: {count}")

        if options["strict"] and result.failed:
            error = PartialBatchFailure(
                f"{result.failed} item(s) failed to import", failed=result.failed
            )
            raise CommandError(str(error)) from error

        self.stdout.write(self.style.SUCCESS("Demo data imported"))
