"""
Link discovery for the site crawler.

Pulls anchor targets out of extracted page content and turns them into
absolute, fragment-free http(s) URLs. Assets, mail/phone/script links and
shop/account pages are never worth rendering as CMS pages and are dropped.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

NON_PAGE_LINK = re.compile(
    r"^(mailto|tel|javascript):"
    r"|^#"
    r"|\.(jpe?g|png|gif|svg|webp|ico|css|js|pdf|zip|exe|mp[34])$"
    r"|/(cart|checkout|login|signup|account|wp-admin)(/|$)",
    re.IGNORECASE,
)


@dataclass
class ExtractedLink:
    url: str
    text: str = ""
    is_internal: bool = True


def normalize_link(href: str, base_url: str) -> Optional[str]:
    """Resolve href against base_url; None for non-http(s) targets."""
    absolute, _fragment = urldefrag(urljoin(base_url, href))
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    if not parsed.path:
        absolute = parsed._replace(path="/").geturl()
    return absolute


class LinkExtractor:
    """Finds crawlable page links in an HTML fragment, in document order."""

    def extract_links(
        self,
        html: str,
        base_url: str,
        url_pattern: Optional[str] = None,
    ) -> List[ExtractedLink]:
        """
        Args:
            html: Page or content HTML
            base_url: URL relative links are resolved against
            url_pattern: Regex a link must match to be kept

        Returns:
            De-duplicated links; is_internal marks links on base_url's host
        """
        if not html:
            return []

        pattern = re.compile(url_pattern) if url_pattern else None
        base_host = urlparse(base_url).hostname
        links: List[ExtractedLink] = []
        seen = set()

        for anchor in BeautifulSoup(html, "html.parser").find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or NON_PAGE_LINK.search(href):
                continue

            url = normalize_link(href, base_url)
            if url is None or url in seen:
                continue
            seen.add(url)

            if NON_PAGE_LINK.search(urlparse(url).path):
                continue
            if pattern is not None and not pattern.search(url):
                continue

            links.append(ExtractedLink(
                url=url,
                text=anchor.get_text(strip=True)[:200],
                is_internal=urlparse(url).hostname == base_host,
            ))

        logger.debug(f"Found {len(links)} links on {base_url}")
        return links
