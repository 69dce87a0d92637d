"""
Headless browser page renderer.

Loads a URL in Playwright Chromium, waits for the network to go idle (bounded
by the navigation timeout), then gives an optional CSS selector a short grace
period to appear. A selector that never shows up is reported as a warning and
the page is still returned.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from cms.exceptions import NavigationTimeoutError, NetworkError

logger = logging.getLogger(__name__)

# Use a browser User-Agent to avoid bot detection
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Grace period for the wait-for selector once the network is idle (ms)
SELECTOR_WAIT_MS = 5000


@dataclass
class RenderedPage:
    """Fully rendered page HTML."""

    html: str
    final_url: str
    status_code: int = 200
    warnings: List[str] = field(default_factory=list)


class PageRenderer:
    """
    Renders pages with a headless Chromium browser.

    The browser is launched on first use and kept for the lifetime of the
    renderer; call close() (or use it as an async context manager) from the
    same event loop that rendered.
    """

    def __init__(self, user_agent: Optional[str] = None, headless: bool = True):
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.headless = headless

        self._playwright = None
        self._browser = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_playwright()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_playwright(self):
        """Start Playwright and launch Chromium (lazy)."""
        if self._browser is not None:
            return

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        logger.info("Playwright browser initialized for page rendering")

    async def close(self):
        """Close browser and Playwright instance."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        wait_for_selector: Optional[str] = "body",
    ) -> RenderedPage:
        """
        Render a URL and return its final DOM as HTML.

        Args:
            url: Page to load
            timeout_ms: Navigation timeout in milliseconds
            wait_for_selector: CSS selector to wait for after load (best-effort)

        Returns:
            RenderedPage with the serialized DOM

        Raises:
            NavigationTimeoutError: The page did not settle within timeout_ms
            NetworkError: The browser could not load the page
        """
        timeout_ms = timeout_ms or getattr(settings, "CMS_CRAWL_TIMEOUT_MS", 30000)

        try:
            await self._init_playwright()
        except PlaywrightError as e:
            raise NetworkError(str(e)) from e

        try:
            context = await self._browser.new_context(user_agent=self.user_agent)
        except PlaywrightError as e:
            logger.error(f"Browser context error for {url}: {e}")
            raise NetworkError(str(e)) from e

        try:
            try:
                page = await context.new_page()
                response = await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                logger.error(f"Navigation timeout for {url}: {e}")
                raise NavigationTimeoutError(str(e)) from e
            except PlaywrightError as e:
                logger.error(f"Navigation error for {url}: {e}")
                raise NetworkError(str(e)) from e

            warnings = []
            if wait_for_selector:
                try:
                    await page.wait_for_selector(wait_for_selector, timeout=SELECTOR_WAIT_MS)
                except PlaywrightTimeoutError:
                    message = f"Selector {wait_for_selector!r} not found on {url}"
                    logger.warning(message)
                    warnings.append(message)

            try:
                html = await page.content()
            except PlaywrightError as e:
                logger.error(f"Could not read DOM of {url}: {e}")
                raise NetworkError(str(e)) from e

            return RenderedPage(
                html=html,
                final_url=page.url,
                status_code=response.status if response else 200,
                warnings=warnings,
            )
        finally:
            await context.close()
