"""
Monitoring for the cms application.

- Sentry error tracking with crawl and import context
"""

from .sentry_integration import add_crawl_breadcrumb, capture_crawl_error

__all__ = [
    "add_crawl_breadcrumb",
    "capture_crawl_error",
]
