"""
Django base settings for the CMS content service.

Shared by every environment; development.py, test.py and production.py
fill in DATABASES and CACHES.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Repository root
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "SECRET_KEY",
    "django-insecure-cms-dev-key-change-in-production-7f3k2"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "cms",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"


# Database
DATABASES = {}


# Password validation

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]


# Internationalization

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Cache
CACHES = {}


# Celery Configuration

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 10 * 60  # 10 minutes max for a single page crawl

# Task routing - crawl jobs run on their own queue
CELERY_TASK_ROUTES = {
    "cms.tasks.crawl_*": {"queue": "crawl"},
}


# Django REST Framework Configuration

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_RATES": {
        "crawl_trigger": os.getenv("CMS_CRAWL_THROTTLE_RATE", "30/hour"),
        "demo_import": os.getenv("CMS_DEMO_IMPORT_THROTTLE_RATE", "10/hour"),
    },
}


# DRF Spectacular (OpenAPI/Swagger) Configuration

SPECTACULAR_SETTINGS = {
    "TITLE": "CMS Content API",
    "DESCRIPTION": "Page crawling, image rehosting and demo content import",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# Logging Configuration

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "cms": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
    },
}


# Sentry Configuration

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2"))

# Initialize Sentry only when a DSN is configured
import sentry_sdk

if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        send_default_pii=False,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        environment=SENTRY_ENVIRONMENT,
    )


# CMS Configuration

# Directory rehosted images are written to, and the public URL prefix they are served under
CMS_UPLOADS_DIR = Path(os.getenv("CMS_UPLOADS_DIR", str(BASE_DIR / "uploads")))
CMS_UPLOADS_URL = os.getenv("CMS_UPLOADS_URL", "/uploads/")

# Bundled theme demo documents live at <CMS_THEMES_DIR>/<theme>/demo/data.json
CMS_THEMES_DIR = Path(os.getenv("CMS_THEMES_DIR", str(BASE_DIR / "themes")))

# Image download timeout (seconds)
CMS_IMAGE_TIMEOUT = int(os.getenv("CMS_IMAGE_TIMEOUT", "30"))

# Raster images are resized to fit this box (never upscaled) and re-encoded as JPEG
CMS_IMAGE_MAX_EDGE = 1920
CMS_IMAGE_JPEG_QUALITY = 85

# Maximum simultaneous image downloads within one batch
CMS_REHOST_CONCURRENCY = int(os.getenv("CMS_REHOST_CONCURRENCY", "8"))

# Page extraction never rehosts more than this many images per page
CMS_EXTRACT_REHOST_LIMIT = 50

# Navigation timeout for page rendering (milliseconds)
CMS_CRAWL_TIMEOUT_MS = int(os.getenv("CMS_CRAWL_TIMEOUT_MS", "30000"))

# Jobs stuck in PROCESSING longer than this are marked FAILED by the sweeper
CMS_CRAWL_STALE_MINUTES = int(os.getenv("CMS_CRAWL_STALE_MINUTES", "30"))
