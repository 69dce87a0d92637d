"""
Sentry error tracking for crawl jobs.

The SDK is configured in settings/base.py; when no DSN is set every call
here is a no-op inside sentry_sdk itself.

Usage:
    from cms.monitoring import capture_crawl_error

    try:
        page = await extractor.extract(url, options)
    except CMSError as e:
        capture_crawl_error(error=e, url=url, job_id=job.id)
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookies",
    "cookie",
    "api_key",
    "apikey",
    "authorization",
    "password",
    "secret",
    "token",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values whose key looks sensitive, recursing into nested dicts.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value

    return filtered


def add_crawl_breadcrumb(
    url: str,
    message: str = "Crawl operation",
    level: str = "info",
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """Add a breadcrumb so later errors show which page was being crawled."""
    data = {"url": url}
    if extra_data:
        data.update(_filter_sensitive_data(extra_data))

    sentry_sdk.add_breadcrumb(category="crawl", message=message, level=level, data=data)


def capture_crawl_error(
    error: Exception,
    url: Optional[str] = None,
    job_id=None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a crawl failure to Sentry with job context.

    Args:
        error: The exception that occurred
        url: URL being crawled
        job_id: CrawlJob id, if the failure belongs to a job
        extra_context: Additional context (filtered for sensitive data)
    """
    add_crawl_breadcrumb(
        url=url or "Unknown",
        message=f"Error: {type(error).__name__}",
        level="error",
    )

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("cms.error_type", type(error).__name__)
        if job_id:
            scope.set_extra("crawl_job_id", str(job_id))
        if url:
            scope.set_extra("crawl_url", url)
        if extra_context:
            scope.set_extra("crawl_context", _filter_sensitive_data(extra_context))

        sentry_sdk.capture_exception(error)
