"""
Celery tasks for the cms application.

- crawl_url: Worker task that extracts one page for a CrawlJob
- fail_stale_crawl_jobs: Periodic sweep of jobs abandoned in PROCESSING
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from cms.exceptions import InvalidStateError
from cms.models import CrawlJob, CrawlJobStatus
from cms.monitoring import add_crawl_breadcrumb, capture_crawl_error
from cms.services.page_extractor import ExtractOptions, ExtractedPage, PageExtractor

logger = logging.getLogger(__name__)


def _get_page_extractor() -> PageExtractor:
    return PageExtractor()


async def _extract(extractor: PageExtractor, url: str, options: ExtractOptions) -> ExtractedPage:
    try:
        return await extractor.extract(url, options)
    finally:
        await extractor.close()


@shared_task(name="cms.tasks.crawl_url", bind=True)
def crawl_url(self, job_id: str) -> Dict[str, Any]:
    """
    Extract the page behind a crawl job and store the result on the job.

    The job ends up COMPLETED with title/content/images/metadata, or FAILED
    with the error message verbatim. Failed jobs are never retried.

    Args:
        job_id: UUID of the CrawlJob

    Returns:
        Dict with job id and final status
    """
    logger.info(f"Starting crawl for job {job_id}")

    try:
        job = CrawlJob.objects.get(id=job_id)
    except CrawlJob.DoesNotExist:
        logger.error(f"Crawl job {job_id} not found")
        return {"error": "Crawl job not found", "status": "failed"}

    if job.status == CrawlJobStatus.PENDING:
        job.start_processing()
    if job.status != CrawlJobStatus.PROCESSING:
        logger.warning(f"Crawl job {job_id} is {job.status}, skipping")
        return {"job_id": str(job.id), "status": job.status}

    add_crawl_breadcrumb(job.source_url, message="Crawl started", extra_data={"job_id": str(job.id)})
    extractor = _get_page_extractor()

    try:
        options = ExtractOptions.from_dict(job.options)

        # Run async extraction in its own event loop
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            page = loop.run_until_complete(_extract(extractor, job.source_url, options))
        finally:
            loop.close()

    except Exception as e:
        error_message = str(e) or type(e).__name__
        logger.error(f"Crawl failed for job {job_id} ({job.source_url}): {error_message}")
        capture_crawl_error(error=e, url=job.source_url, job_id=job.id)
        job = _finish_job(job_id, lambda locked: locked.mark_failed(error_message))
        return {"job_id": str(job_id), "status": job.status if job else "deleted", "error": error_message}

    for warning in page.warnings:
        logger.warning(f"Crawl job {job_id}: {warning}")

    job = _finish_job(
        job_id,
        lambda locked: locked.mark_completed(
            title=page.title,
            content=page.content,
            images=[image.to_dict() for image in page.images],
            metadata=page.metadata.to_dict(),
        ),
    )

    logger.info(f"Crawl completed for job {job_id}: {page.title!r}")
    return {"job_id": str(job_id), "status": job.status if job else "deleted"}


def _finish_job(job_id, transition) -> Optional[CrawlJob]:
    """Apply a final transition under a row lock so a concurrent sweep is not overwritten."""
    with transaction.atomic():
        try:
            job = CrawlJob.objects.select_for_update().get(id=job_id)
        except CrawlJob.DoesNotExist:
            logger.warning(f"Crawl job {job_id} was deleted while crawling")
            return None
        try:
            transition(job)
        except InvalidStateError as e:
            logger.warning(f"Crawl job {job_id} changed state while crawling: {e}")
    return job


@shared_task(name="cms.tasks.fail_stale_crawl_jobs")
def fail_stale_crawl_jobs(max_age_minutes: Optional[int] = None) -> Dict[str, Any]:
    """
    Mark jobs stuck in PROCESSING as FAILED.

    A job stays in PROCESSING forever if its worker dies mid-crawl; this
    periodic sweep gives such jobs a terminal state so they can be inspected
    and deleted.
    """
    max_age_minutes = max_age_minutes or getattr(settings, "CMS_CRAWL_STALE_MINUTES", 30)
    cutoff = timezone.now() - timedelta(minutes=max_age_minutes)

    stale_ids = list(
        CrawlJob.objects.filter(
            status=CrawlJobStatus.PROCESSING, started_at__lt=cutoff
        ).values_list("id", flat=True)
    )

    failed = 0
    for job_id in stale_ids:
        with transaction.atomic():
            job = CrawlJob.objects.select_for_update().get(id=job_id)
            if job.status != CrawlJobStatus.PROCESSING:
                continue
            job.mark_failed(f"Crawl did not finish within {max_age_minutes} minutes")
            failed += 1

    if failed:
        logger.warning(f"Marked {failed} stale crawl jobs as failed")

    return {"checked": len(stale_ids), "failed": failed}
