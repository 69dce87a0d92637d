"""
Throttle classes for the write-heavy API endpoints.

Rates come from REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] keyed by scope.
"""

from rest_framework.throttling import UserRateThrottle


class CrawlTriggerThrottle(UserRateThrottle):
    """
    Throttle for starting crawls.

    Applied to: /api/v1/crawler/crawl/
    """

    scope = "crawl_trigger"


class DemoImportThrottle(UserRateThrottle):
    """
    Throttle for demo data imports.

    Applied to: /api/v1/demo/import/
    """

    scope = "demo_import"
