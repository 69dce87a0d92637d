"""
Management command to crawl several pages of one site.

Every extracted page is stored as a COMPLETED crawl job, ready to be
imported as a draft page from the admin or the API.

Usage:
    python manage.py crawl_site https://example.com/
    python manage.py crawl_site https://example.com/blog/ --max-pages 25 --pattern "/blog/"
"""

import asyncio

from django.core.management.base import BaseCommand, CommandError

from cms.exceptions import ValidationError
from cms.models import CrawlJob
from cms.services.crawl_jobs import validate_source_url
from cms.services.page_extractor import ExtractOptions
from cms.services.website_crawler import DEFAULT_MAX_PAGES, crawl_website


class Command(BaseCommand):
    help = "Crawl pages of a site and store them as completed crawl jobs"

    def add_arguments(self, parser):
        parser.add_argument("url", help="Start URL")
        parser.add_argument(
            "--max-pages",
            type=int,
            default=DEFAULT_MAX_PAGES,
            help=f"Maximum pages to extract (default: {DEFAULT_MAX_PAGES})",
        )
        parser.add_argument("--pattern", help="Only follow links matching this regex")
        parser.add_argument(
            "--no-follow",
            action="store_true",
            help="Only extract the start URL",
        )

    def handle(self, *args, **options):
        try:
            url = validate_source_url(options["url"])
        except ValidationError as e:
            raise CommandError(str(e))

        extract_options = ExtractOptions.from_dict({})

        loop = asyncio.new_event_loop()
        try:
            pages = loop.run_until_complete(
                crawl_website(
                    url,
                    options=extract_options,
                    max_pages=options["max_pages"],
                    follow_links=not options["no_follow"],
                    url_pattern=options["pattern"],
                )
            )
        finally:
            loop.close()

        for page in pages:
            job = CrawlJob.objects.create(source_url=page.url, options=extract_options.to_dict())
            job.start_processing()
            job.mark_completed(
                title=page.title,
                content=page.content,
                images=[image.to_dict() for image in page.images],
                metadata=page.metadata.to_dict(),
            )
            self.stdout.write(f"  Stored: {page.url} -> job {job.id}")

        self.stdout.write(self.style.SUCCESS(f"Crawled {len(pages)} page(s)"))
