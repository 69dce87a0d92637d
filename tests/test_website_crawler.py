"""
Tests for link extraction and the multi-page site crawler.
"""

import pytest

from cms.exceptions import NetworkError
from cms.fetchers.page_renderer import RenderedPage
from cms.services.link_extractor import LinkExtractor
from cms.services.page_extractor import PageExtractor
from cms.services.website_crawler import crawl_website


class TestLinkExtractor:
    def test_resolves_and_deduplicates_links(self):
        html = """
        <a href="/about">About</a>
        <a href="/about#team">Team</a>
        <a href="https://other.example.org/x">Elsewhere</a>
        <a href="mailto:hi@example.com">Mail</a>
        <a href="/files/menu.pdf">Menu</a>
        <a href="/cart">Cart</a>
        <a href="/blog?page=2">Older</a>
        """

        links = LinkExtractor().extract_links(html, "https://example.com/")

        assert [link.url for link in links] == [
            "https://example.com/about",
            "https://other.example.org/x",
            "https://example.com/blog?page=2",
        ]
        assert links[0].text == "About"
        assert links[0].is_internal is True
        assert links[1].is_internal is False

    def test_url_pattern_filter(self):
        html = '<a href="/blog/one">1</a><a href="/shop/two">2</a>'

        links = LinkExtractor().extract_links(html, "https://example.com/", url_pattern=r"/blog/")

        assert [link.url for link in links] == ["https://example.com/blog/one"]

    def test_empty_html(self):
        assert LinkExtractor().extract_links("", "https://example.com/") == []


class SiteRenderer:
    """Serves a small in-memory site; unknown URLs fail like a dead host."""

    def __init__(self, site):
        self.site = site
        self.rendered = []
        self.closed = False

    async def render(self, url, timeout_ms=None, wait_for_selector="body"):
        self.rendered.append(url)
        if url not in self.site:
            raise NetworkError(f"net::ERR_CONNECTION_REFUSED at {url}")
        return RenderedPage(html=self.site[url], final_url=url)

    async def close(self):
        self.closed = True


SITE = {
    "https://example.com/": (
        "<title>Home</title><main><p>Welcome</p>"
        '<a href="/about">About</a><a href="/broken">Broken</a>'
        '<a href="https://elsewhere.org/">Out</a></main>'
    ),
    "https://example.com/about": (
        '<title>About</title><main><p>About us</p><a href="/">Home</a><a href="/team">Team</a></main>'
    ),
    "https://example.com/team": "<title>Team</title><main><p>People</p></main>",
}


class TestCrawlWebsite:
    @pytest.mark.asyncio
    async def test_breadth_first_same_host(self):
        renderer = SiteRenderer(SITE)

        pages = await crawl_website(
            "https://example.com/", extractor=PageExtractor(renderer=renderer)
        )

        assert [page.title for page in pages] == ["Home", "About", "Team"]
        assert "https://elsewhere.org/" not in renderer.rendered
        assert renderer.rendered.count("https://example.com/") == 1
        assert renderer.closed is True

    @pytest.mark.asyncio
    async def test_failing_page_is_skipped(self):
        renderer = SiteRenderer(SITE)

        pages = await crawl_website(
            "https://example.com/", extractor=PageExtractor(renderer=renderer)
        )

        assert "https://example.com/broken" in renderer.rendered
        assert all(page.url != "https://example.com/broken" for page in pages)

    @pytest.mark.asyncio
    async def test_max_pages(self):
        pages = await crawl_website(
            "https://example.com/", max_pages=2, extractor=PageExtractor(renderer=SiteRenderer(SITE))
        )

        assert [page.title for page in pages] == ["Home", "About"]

    @pytest.mark.asyncio
    async def test_no_follow(self):
        pages = await crawl_website(
            "https://example.com/",
            follow_links=False,
            extractor=PageExtractor(renderer=SiteRenderer(SITE)),
        )

        assert [page.title for page in pages] == ["Home"]
