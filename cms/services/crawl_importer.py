"""
Crawl Importer Service.

Turns a COMPLETED crawl job into a DRAFT page holding the crawled HTML as a
single html block, then moves the job to IMPORTED. Both writes happen in one
transaction with the job row locked, so a job can only ever be imported once.
"""

import logging
import time
from typing import Any, Dict, Optional

from django.db import transaction

from cms.exceptions import InvalidStateError, NotFoundError
from cms.models import ContentStatus, CrawlJob, CrawlJobStatus, Page
from cms.persistence import ContentRepository

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Imported Page"
DEFAULT_TEMPLATE = "page"


def _default_slug() -> str:
    return f"imported-{int(time.time() * 1000)}"


def import_job_as_page(
    job_id,
    overrides: Optional[Dict[str, Any]] = None,
    acting_user=None,
) -> Page:
    """
    Create a draft page from a completed crawl job.

    Args:
        job_id: CrawlJob id
        overrides: Optional "title", "slug" and "template"
        acting_user: User recorded as the page author

    Returns:
        The new Page

    Raises:
        NotFoundError: No such job
        InvalidStateError: Job is not COMPLETED (including already IMPORTED)
        UniqueConstraintError: The slug is taken
    """
    overrides = overrides or {}
    repository = ContentRepository()

    with transaction.atomic():
        try:
            job = CrawlJob.objects.select_for_update().get(id=job_id)
        except CrawlJob.DoesNotExist:
            raise NotFoundError("Crawl job not found")

        if job.status != CrawlJobStatus.COMPLETED:
            raise InvalidStateError("Cannot import: crawl job not completed")

        metadata = job.metadata or {}
        page = repository.create(
            Page,
            {
                "title": (overrides.get("title") or job.title or DEFAULT_TITLE)[:255],
                "slug": overrides.get("slug") or _default_slug(),
                "template": overrides.get("template") or DEFAULT_TEMPLATE,
                "content": {"blocks": [{"type": "html", "content": job.content}]},
                "status": ContentStatus.DRAFT,
                "seo_title": (job.title or "")[:255],
                "seo_desc": metadata.get("description") or "",
                "author": acting_user,
            },
        )
        job.mark_imported(page)

    logger.info(f"Imported crawl job {job.id} as page {page.slug}")
    return page
