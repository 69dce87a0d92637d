"""
Crawl job lifecycle operations used by the API and admin.

start_crawl() validates the URL, records the job, moves it to PROCESSING and
hands it to the crawl queue. Callers get the job back immediately and poll
get_job() for the outcome.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from django.core.exceptions import ValidationError as DjangoValidationError

from cms.exceptions import NotFoundError, ValidationError
from cms.models import CrawlJob, CrawlJobStatus
from cms.persistence import ContentRepository
from cms.services.page_extractor import ExtractOptions
from cms.tasks import crawl_url

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def validate_source_url(url: Optional[str]) -> str:
    """
    Check that url is an absolute http(s) URL.

    Raises:
        ValidationError: "URL is required" or "Invalid URL format"
    """
    url = (url or "").strip() if isinstance(url, str) else ""
    if not url:
        raise ValidationError("URL is required")

    try:
        parsed = urlparse(url)
    except ValueError:
        raise ValidationError("Invalid URL format")

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Invalid URL format")

    return url


def start_crawl(url: str, options: Optional[Dict[str, Any]] = None) -> CrawlJob:
    """
    Submit a URL for extraction.

    Returns:
        The new CrawlJob, already in PROCESSING

    Raises:
        ValidationError: Bad URL or options
    """
    url = validate_source_url(url)
    extract_options = ExtractOptions.from_dict(options)

    job = CrawlJob.objects.create(source_url=url, options=extract_options.to_dict())
    job.start_processing()

    crawl_url.apply_async(args=[str(job.id)], queue="crawl")
    logger.info(f"Crawl dispatched: job {job.id} for {url}")

    return job


def get_job(job_id) -> CrawlJob:
    """
    Raises:
        NotFoundError: No such job
    """
    try:
        return CrawlJob.objects.get(id=job_id)
    except (CrawlJob.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Crawl job not found")


def list_jobs(
    status: Optional[str] = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> Tuple[List[CrawlJob], int]:
    """
    List jobs newest first.

    Returns:
        (jobs on this page, total matching jobs)
    """
    queryset = CrawlJob.objects.all().order_by("-created_at")

    if status:
        if status not in CrawlJobStatus.values:
            raise ValidationError(f"Unknown crawl job status: {status}")
        queryset = queryset.filter(status=status)

    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    offset = max(0, int(offset))

    total = queryset.count()
    return list(queryset[offset:offset + limit]), total


def delete_job(job_id) -> None:
    """
    Delete a job in any state.

    Raises:
        NotFoundError: No such job
    """
    try:
        ContentRepository().delete(CrawlJob, job_id)
    except (DjangoValidationError, ValueError):
        raise NotFoundError("Crawl job not found")
    except NotFoundError:
        raise NotFoundError("Crawl job not found")
    logger.info(f"Deleted crawl job {job_id}")
