"""
Test settings for the CMS content service.

Uses in-memory SQLite and eager Celery for fast test execution.
"""

import os
from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Cache - use local memory cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

# Test Celery - run tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["cms"]["level"] = "WARNING"

# Password validators disabled for faster tests
AUTH_PASSWORD_VALIDATORS = []

# Use faster password hasher for tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Throttles share the locmem cache across the whole run
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    "crawl_trigger": "10000/hour",
    "demo_import": "10000/hour",
}

# Disable Sentry in tests
SENTRY_DSN = ""

# Test CMS settings - fail fast
CMS_IMAGE_TIMEOUT = 5
CMS_CRAWL_TIMEOUT_MS = 5000
CMS_UPLOADS_DIR = BASE_DIR / ".test-uploads"
