"""
Page Extractor Service.

Renders a URL in a headless browser and pulls out what an editor needs to
turn it into a CMS page: title, main content HTML, images and metadata.

Extraction heuristics, in order:
1. Title: <title>, first <h1>, og:title, then "Untitled"
2. Description: meta description, og:description, then ""
3. Content root: first match of CONTENT_SELECTORS, else <body>;
   boilerplate (scripts, navigation, sidebars, ads) is stripped from it
4. Cleanup: empty elements without media are dropped, whitespace collapsed
5. Images: every <img> src/data-src, absolutized and de-duplicated in
   document order; optionally the first CMS_EXTRACT_REHOST_LIMIT are rehosted
6. Metadata: description, keywords, author, og:image, canonical
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from django.conf import settings
from django.utils import timezone

from cms.exceptions import ExtractionWarning, ValidationError
from cms.fetchers.page_renderer import PageRenderer
from cms.services.image_pipeline import ImagePipeline

logger = logging.getLogger(__name__)

CONTENT_SELECTORS = [
    "article",
    '[role="main"]',
    "main",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-content",
    "#content",
]

BOILERPLATE_SELECTOR = (
    "script, style, nav, header, footer, aside, .sidebar, .comments, .advertisement"
)

MEDIA_TAGS = ["img", "video", "iframe"]

WHITESPACE_RUN = re.compile(r"\s+")
INTER_TAG_WHITESPACE = re.compile(r">\s+<")


@dataclass
class ExtractOptions:
    """Per-extraction options."""

    wait_for_selector: Optional[str] = "body"
    timeout_ms: int = 30000
    extract_images: bool = True
    rehost_images_locally: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExtractOptions":
        """
        Build options from API input (camelCase keys).

        Raises:
            ValidationError: timeout is not a positive integer
        """
        data = data or {}
        options = cls(timeout_ms=getattr(settings, "CMS_CRAWL_TIMEOUT_MS", 30000))

        if "waitForSelector" in data:
            options.wait_for_selector = data["waitForSelector"] or None
        if "timeout" in data:
            try:
                options.timeout_ms = int(data["timeout"])
            except (TypeError, ValueError):
                raise ValidationError("timeout must be an integer number of milliseconds")
            if options.timeout_ms <= 0:
                raise ValidationError("timeout must be positive")
        if "extractImages" in data:
            options.extract_images = bool(data["extractImages"])

        rehost = data.get("rehostImagesLocally", data.get("downloadImagesLocal"))
        if rehost is not None:
            options.rehost_images_locally = bool(rehost)

        return options

    def to_dict(self) -> Dict[str, Any]:
        return {
            "waitForSelector": self.wait_for_selector,
            "timeout": self.timeout_ms,
            "extractImages": self.extract_images,
            "rehostImagesLocally": self.rehost_images_locally,
        }


@dataclass
class ExtractedImage:
    """An image found on the page."""

    source_url: str
    alt_text: str = ""
    local_reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"url": self.source_url, "alt": self.alt_text}
        if self.local_reference:
            data["local"] = self.local_reference
        return data


@dataclass
class PageMetadata:
    description: str = ""
    keywords: str = ""
    author: str = ""
    og_image: str = ""
    canonical: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "description": self.description,
            "keywords": self.keywords,
            "author": self.author,
            "ogImage": self.og_image,
            "canonical": self.canonical,
        }


@dataclass
class ExtractedPage:
    """Result of extracting one page."""

    url: str
    title: str
    content: str
    images: List[ExtractedImage] = field(default_factory=list)
    metadata: PageMetadata = field(default_factory=PageMetadata)
    crawled_at: datetime = field(default_factory=timezone.now)
    final_url: str = ""
    warnings: List[ExtractionWarning] = field(default_factory=list)


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return tag.get("content", "") or ""


def _first_non_empty(*candidates: Optional[str]) -> str:
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return ""


def clean_html(html: str) -> str:
    """
    Drop elements that carry neither text nor media, then collapse whitespace.

    Media elements themselves (img, video, iframe) are always kept.
    """
    fragment = BeautifulSoup(html, "html.parser")

    for element in fragment.find_all(True):
        if element.decomposed or element.name in MEDIA_TAGS:
            continue
        if element.get_text(strip=True) or element.find(MEDIA_TAGS):
            continue
        element.decompose()

    cleaned = WHITESPACE_RUN.sub(" ", str(fragment))
    cleaned = INTER_TAG_WHITESPACE.sub("><", cleaned)
    return cleaned.strip()


class PageExtractor:
    """
    Extracts title, content, images and metadata from a rendered page.

    The renderer must provide ``render(url, timeout_ms, wait_for_selector)``
    and ``close()``; the image pipeline is only used when rehosting.
    """

    def __init__(self, renderer=None, image_pipeline: Optional[ImagePipeline] = None):
        self.renderer = renderer or PageRenderer()
        self._image_pipeline = image_pipeline

    @property
    def image_pipeline(self) -> ImagePipeline:
        if self._image_pipeline is None:
            self._image_pipeline = ImagePipeline()
        return self._image_pipeline

    async def close(self):
        await self.renderer.close()

    async def extract(self, url: str, options: Optional[ExtractOptions] = None) -> ExtractedPage:
        """
        Render and extract a single URL.

        Raises:
            NavigationTimeoutError: The page did not load within options.timeout_ms
            NetworkError: The browser could not load the page
        """
        options = options or ExtractOptions()
        logger.info(f"Extracting {url}")

        rendered = await self.renderer.render(
            url,
            timeout_ms=options.timeout_ms,
            wait_for_selector=options.wait_for_selector,
        )

        page = self.parse(rendered.html, url, options, base_url=rendered.final_url or url)
        page.final_url = rendered.final_url or url
        page.warnings = [ExtractionWarning(w) for w in rendered.warnings] + page.warnings

        if options.extract_images and options.rehost_images_locally and page.images:
            await self._rehost(page)

        logger.info(
            f"Extracted {url}: title={page.title!r}, {len(page.images)} images, "
            f"{len(page.warnings)} warnings"
        )
        return page

    def parse(
        self,
        html: str,
        url: str,
        options: Optional[ExtractOptions] = None,
        base_url: Optional[str] = None,
    ) -> ExtractedPage:
        """Extract everything from already-rendered HTML."""
        options = options or ExtractOptions()
        base_url = base_url or url
        soup = BeautifulSoup(html or "", "html.parser")
        warnings: List[ExtractionWarning] = []

        title_tag = soup.find("title")
        h1 = soup.find("h1")
        title = _first_non_empty(
            title_tag.get_text() if title_tag else "",
            h1.get_text() if h1 else "",
            _meta_content(soup, property="og:title"),
        ) or "Untitled"

        metadata = PageMetadata(
            description=_first_non_empty(
                _meta_content(soup, name="description"),
                _meta_content(soup, property="og:description"),
            ),
            keywords=_meta_content(soup, name="keywords"),
            author=_meta_content(soup, name="author"),
            og_image=_meta_content(soup, property="og:image"),
        )
        canonical = soup.find("link", rel="canonical")
        metadata.canonical = (canonical.get("href") if canonical else "") or url

        root = None
        for selector in CONTENT_SELECTORS:
            root = soup.select_one(selector)
            if root is not None:
                break
        if root is None:
            root = soup.body or soup
            message = f"No content container matched on {url}; using <body>"
            logger.warning(message)
            warnings.append(ExtractionWarning(message))

        for element in root.select(BOILERPLATE_SELECTOR):
            if not element.decomposed:
                element.decompose()

        content = clean_html(root.decode_contents())

        images: List[ExtractedImage] = []
        if options.extract_images:
            images = self._collect_images(soup, base_url)

        return ExtractedPage(
            url=url,
            title=title,
            content=content,
            images=images,
            metadata=metadata,
            final_url=base_url,
            warnings=warnings,
        )

    def _collect_images(self, soup: BeautifulSoup, base_url: str) -> List[ExtractedImage]:
        images: List[ExtractedImage] = []
        seen = set()

        for img in soup.find_all("img"):
            src = (img.get("src") or img.get("data-src") or "").strip()
            if not src:
                continue

            absolute = urljoin(base_url, src)
            if absolute in seen:
                continue
            seen.add(absolute)
            images.append(ExtractedImage(source_url=absolute, alt_text=img.get("alt", "") or ""))

        return images

    async def _rehost(self, page: ExtractedPage):
        limit = getattr(settings, "CMS_EXTRACT_REHOST_LIMIT", 50)
        batch = page.images[:limit]
        if len(page.images) > limit:
            logger.info(
                f"Rehosting first {limit} of {len(page.images)} images from {page.url}"
            )

        results = await self.image_pipeline.rehost_images([image.source_url for image in batch])
        for image, result in zip(batch, results):
            if result.success:
                image.local_reference = result.public_url
