"""
Tests for the import_demo_data and crawl_site management commands,
and for Media file cleanup.
"""

import json
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from cms.models import CrawlJob, CrawlJobStatus, Media, Page
from cms.services.page_extractor import ExtractedImage, ExtractedPage, PageMetadata


@pytest.fixture
def demo_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps({"pages": [{"title": "Home"}, {"title": "!!!"}], "menus": [{"name": "Main"}]}),
        encoding="utf-8",
    )
    return path


@pytest.mark.django_db
class TestImportDemoDataCommand:
    def test_imports_file(self, demo_file, upload_dir):
        out = StringIO()

        call_command("import_demo_data", str(demo_file), stdout=out)

        assert Page.objects.filter(slug="home").exists()
        assert "Demo data imported" in out.getvalue()
        assert "failed: 1" in out.getvalue()

    def test_strict_fails_on_partial_import(self, demo_file, upload_dir):
        with pytest.raises(CommandError, match="1 item"):
            call_command("import_demo_data", str(demo_file), "--strict", stdout=StringIO())

    def test_requires_exactly_one_source(self, db):
        with pytest.raises(CommandError):
            call_command("import_demo_data", stdout=StringIO())

    def test_unknown_user(self, demo_file):
        with pytest.raises(CommandError, match="User not found"):
            call_command("import_demo_data", str(demo_file), "--user", "ghost", stdout=StringIO())

    def test_records_acting_user(self, demo_file, upload_dir, user):
        call_command("import_demo_data", str(demo_file), "--user", user.username, stdout=StringIO())

        assert Page.objects.get(slug="home").author == user

    def test_missing_file(self, tmp_path, db):
        with pytest.raises(CommandError):
            call_command("import_demo_data", str(tmp_path / "missing.json"), stdout=StringIO())


@pytest.mark.django_db
class TestCrawlSiteCommand:
    @patch("cms.management.commands.crawl_site.crawl_website")
    def test_stores_completed_jobs(self, mock_crawl):
        async def fake_crawl(url, **kwargs):
            return [
                ExtractedPage(
                    url="https://example.com/",
                    title="Home",
                    content="<p>Hi</p>",
                    images=[ExtractedImage(source_url="https://example.com/a.jpg", alt_text="A")],
                    metadata=PageMetadata(description="Welcome"),
                    crawled_at=timezone.now(),
                ),
            ]

        mock_crawl.side_effect = fake_crawl
        out = StringIO()

        call_command("crawl_site", "https://example.com/", "--max-pages", "3", stdout=out)

        job = CrawlJob.objects.get()
        assert job.status == CrawlJobStatus.COMPLETED
        assert job.title == "Home"
        assert job.images == [{"url": "https://example.com/a.jpg", "alt": "A"}]
        assert job.metadata["description"] == "Welcome"
        assert mock_crawl.call_args.kwargs["max_pages"] == 3
        assert "Crawled 1 page(s)" in out.getvalue()

    def test_invalid_url(self):
        with pytest.raises(CommandError, match="Invalid URL format"):
            call_command("crawl_site", "example", stdout=StringIO())


@pytest.mark.django_db
class TestMediaCleanup:
    def test_deleting_media_removes_file(self, upload_dir):
        upload_dir.mkdir(parents=True)
        stored = upload_dir / "abc-photo.jpg"
        stored.write_bytes(b"jpeg")
        media = Media.objects.create(
            filename=stored.name, path=str(stored), url=f"/uploads/{stored.name}"
        )

        media.delete()

        assert not stored.exists()

    def test_file_outside_uploads_is_kept(self, upload_dir, tmp_path):
        outside = tmp_path / "keep.jpg"
        outside.write_bytes(b"jpeg")
        media = Media.objects.create(filename="keep.jpg", path=str(outside), url="/x/keep.jpg")

        media.delete()

        assert outside.exists()
