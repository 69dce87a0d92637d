"""
Tests for the Playwright page renderer.

The browser is a mock; no Chromium is launched.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from cms.exceptions import NavigationTimeoutError, NetworkError
from cms.fetchers.page_renderer import PageRenderer


def make_renderer(page=None, new_context_error=None):
    context = MagicMock()
    context.close = AsyncMock()
    context.new_page = AsyncMock(return_value=page)

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context, side_effect=new_context_error)

    renderer = PageRenderer()
    renderer._browser = browser
    return renderer, context


def make_page(html="<html><body>ok</body></html>", url="https://example.com/final"):
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock(return_value=MagicMock(status=200))
    page.wait_for_selector = AsyncMock()
    page.content = AsyncMock(return_value=html)
    return page


class TestPageRenderer:
    @pytest.mark.asyncio
    async def test_render_returns_dom(self):
        renderer, context = make_renderer(page=make_page())

        rendered = await renderer.render("https://example.com/", timeout_ms=5000)

        assert rendered.html == "<html><body>ok</body></html>"
        assert rendered.final_url == "https://example.com/final"
        assert rendered.warnings == []
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_selector_is_a_warning(self):
        page = make_page()
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("waiting for #app")
        renderer, _ = make_renderer(page=page)

        rendered = await renderer.render("https://example.com/", wait_for_selector="#app")

        assert rendered.html == "<html><body>ok</body></html>"
        assert rendered.warnings == ["Selector '#app' not found on https://example.com/"]

    @pytest.mark.asyncio
    async def test_navigation_timeout(self):
        page = make_page()
        page.goto.side_effect = PlaywrightTimeoutError("Timeout 5000ms exceeded.")
        renderer, context = make_renderer(page=page)

        with pytest.raises(NavigationTimeoutError, match="Timeout 5000ms exceeded."):
            await renderer.render("https://example.com/", timeout_ms=5000)

        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_failure_is_network_error(self):
        renderer, _ = make_renderer(new_context_error=PlaywrightError("Browser has been closed"))

        with pytest.raises(NetworkError, match="Browser has been closed"):
            await renderer.render("https://example.com/")

    @pytest.mark.asyncio
    async def test_new_page_failure_is_network_error(self):
        renderer, context = make_renderer()
        context.new_page.side_effect = PlaywrightError("Target closed")

        with pytest.raises(NetworkError, match="Target closed"):
            await renderer.render("https://example.com/")

        context.close.assert_awaited_once()
