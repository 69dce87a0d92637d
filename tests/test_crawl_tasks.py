"""
Tests for the crawl Celery tasks.

The browser is replaced with a fake renderer via _get_page_extractor.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from cms.exceptions import NavigationTimeoutError
from cms.fetchers.page_renderer import RenderedPage
from cms.models import CrawlJob, CrawlJobStatus
from cms.services.page_extractor import PageExtractor
from cms.tasks import _extract, crawl_url, fail_stale_crawl_jobs

PAGE_HTML = """
<html><head><title>Opening Hours</title>
<meta name="description" content="When we are open"></head>
<body><main><h2>Hours</h2><p>Mon-Fri 9-5</p><img src="/img/door.jpg" alt="Door"></main></body></html>
"""


class FakeRenderer:
    def __init__(self, html="", error=None):
        self.html = html
        self.error = error
        self.closed = False

    async def render(self, url, timeout_ms=None, wait_for_selector="body"):
        if self.error:
            raise self.error
        return RenderedPage(html=self.html, final_url=url)

    async def close(self):
        self.closed = True


@pytest.fixture
def processing_job(db):
    job = CrawlJob.objects.create(source_url="https://example.com/hours")
    job.start_processing()
    return job


@pytest.mark.django_db
class TestCrawlUrlTask:
    def test_successful_crawl_completes_job(self, processing_job):
        renderer = FakeRenderer(html=PAGE_HTML)

        with patch("cms.tasks._get_page_extractor", return_value=PageExtractor(renderer=renderer)):
            result = crawl_url(str(processing_job.id))

        processing_job.refresh_from_db()
        assert result == {"job_id": str(processing_job.id), "status": CrawlJobStatus.COMPLETED}
        assert processing_job.status == CrawlJobStatus.COMPLETED
        assert processing_job.title == "Opening Hours"
        assert "Mon-Fri 9-5" in processing_job.content
        assert processing_job.images == [{"url": "https://example.com/img/door.jpg", "alt": "Door"}]
        assert processing_job.metadata["description"] == "When we are open"
        assert renderer.closed is True

    @patch("cms.tasks.capture_crawl_error")
    def test_navigation_timeout_fails_job_with_message(self, mock_capture, processing_job):
        renderer = FakeRenderer(error=NavigationTimeoutError("Timeout 30000ms exceeded."))

        with patch("cms.tasks._get_page_extractor", return_value=PageExtractor(renderer=renderer)):
            result = crawl_url(str(processing_job.id))

        processing_job.refresh_from_db()
        assert result["status"] == CrawlJobStatus.FAILED
        assert processing_job.status == CrawlJobStatus.FAILED
        assert processing_job.error_message == "Timeout 30000ms exceeded."
        assert processing_job.completed_at is not None
        assert renderer.closed is True
        mock_capture.assert_called_once()

    def test_pending_job_is_started(self, db):
        job = CrawlJob.objects.create(source_url="https://example.com/hours")

        with patch("cms.tasks._get_page_extractor",
                   return_value=PageExtractor(renderer=FakeRenderer(html=PAGE_HTML))):
            crawl_url(str(job.id))

        job.refresh_from_db()
        assert job.status == CrawlJobStatus.COMPLETED
        assert job.started_at is not None

    def test_missing_job(self, db):
        result = crawl_url(str(uuid.uuid4()))

        assert result == {"error": "Crawl job not found", "status": "failed"}

    def test_finished_job_is_skipped(self, processing_job):
        processing_job.mark_failed("earlier failure")

        with patch("cms.tasks._get_page_extractor") as mock_factory:
            result = crawl_url(str(processing_job.id))

        assert result["status"] == CrawlJobStatus.FAILED
        mock_factory.assert_not_called()

    @patch("cms.tasks.capture_crawl_error")
    def test_job_deleted_while_crawling(self, mock_capture, processing_job):
        def delete_then_extract(extractor, url, options):
            CrawlJob.objects.filter(pk=processing_job.pk).delete()
            return _extract(extractor, url, options)

        with patch("cms.tasks._get_page_extractor",
                   return_value=PageExtractor(renderer=FakeRenderer(html=PAGE_HTML))), \
                patch("cms.tasks._extract", side_effect=delete_then_extract):
            result = crawl_url(str(processing_job.id))

        assert result == {"job_id": str(processing_job.id), "status": "deleted"}
        assert not CrawlJob.objects.exists()
        mock_capture.assert_not_called()

    def test_long_title_is_truncated(self, processing_job):
        html = PAGE_HTML.replace("Opening Hours", "Opening Hours " * 60)

        with patch("cms.tasks._get_page_extractor",
                   return_value=PageExtractor(renderer=FakeRenderer(html=html))):
            crawl_url(str(processing_job.id))

        processing_job.refresh_from_db()
        assert processing_job.status == CrawlJobStatus.COMPLETED
        assert len(processing_job.title) == 500
        assert processing_job.title.startswith("Opening Hours Opening Hours")


@pytest.mark.django_db
class TestFailStaleCrawlJobs:
    def test_old_processing_jobs_are_failed(self, processing_job):
        CrawlJob.objects.filter(pk=processing_job.pk).update(
            started_at=timezone.now() - timedelta(hours=2)
        )
        fresh = CrawlJob.objects.create(source_url="https://example.com/fresh")
        fresh.start_processing()

        result = fail_stale_crawl_jobs(max_age_minutes=30)

        assert result == {"checked": 1, "failed": 1}
        processing_job.refresh_from_db()
        fresh.refresh_from_db()
        assert processing_job.status == CrawlJobStatus.FAILED
        assert "30 minutes" in processing_job.error_message
        assert fresh.status == CrawlJobStatus.PROCESSING

    def test_nothing_to_do(self, db):
        assert fail_stale_crawl_jobs() == {"checked": 0, "failed": 0}
