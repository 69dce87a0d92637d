"""
Health check endpoint for monitoring and load balancer checks.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.db.models import Count
from django.http import JsonResponse

from cms.models import CrawlJob, CrawlJobStatus

logger = logging.getLogger(__name__)


def get_redis_connection():
    """
    Get the Redis client behind the default cache.

    Returns:
        Redis client, or None when the cache backend is not django-redis
    """
    if hasattr(cache, "client") and hasattr(cache.client, "get_client"):
        return cache.client.get_client()
    return None


def get_celery_worker_count():
    """
    Count responding Celery workers.

    Returns:
        int: Number of workers that answered, 0 if none did
    """
    from config.celery import app as celery_app

    active = celery_app.control.inspect(timeout=1.0).active()
    return len(active) if active else 0


def _crawl_job_counts():
    counts = {value: 0 for value in CrawlJobStatus.values}
    for row in CrawlJob.objects.values("status").annotate(total=Count("id")):
        counts[row["status"]] = row["total"]
    return counts


def health_check(request):
    """
    Health check for the CMS service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - redis: "connected", "not_configured" or "error"
        - celery_workers: number of responding workers
        - crawl_jobs: job counts keyed by status

    Only a database failure makes the service unhealthy (HTTP 503).
    """
    status = "healthy"
    http_status = 200

    database_status = "connected"
    try:
        connection.ensure_connection()
    except Exception as e:
        logger.error(f"Health check: database unavailable: {e}")
        database_status = "error"
        status = "unhealthy"
        http_status = 503

    redis_status = "not_configured"
    try:
        redis_client = get_redis_connection()
        if redis_client is not None:
            redis_status = "connected" if redis_client.ping() else "error"
    except Exception as e:
        logger.warning(f"Health check: redis unavailable: {e}")
        redis_status = "error"

    celery_workers = 0
    try:
        celery_workers = get_celery_worker_count()
    except Exception as e:
        logger.warning(f"Health check: celery inspect failed: {e}")

    crawl_jobs = None
    if database_status == "connected":
        try:
            crawl_jobs = _crawl_job_counts()
        except Exception as e:
            logger.warning(f"Health check: could not count crawl jobs: {e}")

    return JsonResponse(
        {
            "status": status,
            "database": database_status,
            "redis": redis_status,
            "celery_workers": celery_workers,
            "crawl_jobs": crawl_jobs,
        },
        status=http_status,
    )
