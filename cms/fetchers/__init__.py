"""
Page fetchers for the cms application.

PageRenderer drives a headless Chromium via Playwright so that pages built
client-side are extracted after their scripts have run.
"""

from .page_renderer import PageRenderer, RenderedPage, DEFAULT_USER_AGENT

__all__ = [
    "PageRenderer",
    "RenderedPage",
    "DEFAULT_USER_AGENT",
]
