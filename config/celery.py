"""
Celery configuration for the CMS content service.

Crawl jobs run on their own queue so slow browser renders never
hold up housekeeping tasks on the default queue.
"""

import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("cms")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "crawl": {
        "exchange": "crawl",
        "routing_key": "crawl",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "cms.tasks.crawl_*": {"queue": "crawl"},
    "cms.tasks.fail_stale_crawl_jobs": {"queue": "default"},
}

app.conf.beat_schedule = {
    "fail-stale-crawl-jobs-every-15-minutes": {
        "task": "cms.tasks.fail_stale_crawl_jobs",
        "schedule": crontab(minute="*/15"),
    },
}
