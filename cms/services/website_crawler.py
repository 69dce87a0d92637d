"""
Best-effort multi-page crawl of a single site.

Breadth-first from a start URL: each page is extracted, then same-host links
found in its content are queued until max_pages pages have been extracted.
A page that fails to extract is logged and skipped.
"""

import logging
from collections import deque
from typing import List, Optional
from urllib.parse import urlparse

from cms.services.link_extractor import LinkExtractor
from cms.services.page_extractor import ExtractedPage, ExtractOptions, PageExtractor
from cms.exceptions import CMSError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10


async def crawl_website(
    start_url: str,
    options: Optional[ExtractOptions] = None,
    max_pages: int = DEFAULT_MAX_PAGES,
    follow_links: bool = True,
    url_pattern: Optional[str] = None,
    extractor: Optional[PageExtractor] = None,
) -> List[ExtractedPage]:
    """
    Crawl up to max_pages pages of the site that start_url belongs to.

    Args:
        start_url: First page to extract
        options: Extraction options applied to every page
        max_pages: Upper bound on extracted pages
        follow_links: Queue links found in extracted content
        url_pattern: Regex that queued links must match
        extractor: PageExtractor to use (its renderer is closed afterwards)

    Returns:
        Extracted pages in crawl order
    """
    extractor = extractor or PageExtractor()
    link_extractor = LinkExtractor()
    start_host = urlparse(start_url).hostname

    queue = deque([start_url])
    visited = set()
    results: List[ExtractedPage] = []

    try:
        while queue and len(results) < max_pages:
            url = queue.popleft()
            if url in visited:
                continue
            visited.add(url)

            try:
                page = await extractor.extract(url, options)
            except CMSError as e:
                logger.error(f"Error crawling {url}: {e}")
                continue

            results.append(page)

            if not follow_links or len(results) >= max_pages:
                continue

            for link in link_extractor.extract_links(page.content, url, url_pattern):
                if urlparse(link.url).hostname == start_host and link.url not in visited:
                    queue.append(link.url)
    finally:
        await extractor.close()

    logger.info(f"Crawled {len(results)} pages from {start_url} ({len(visited)} visited)")
    return results
