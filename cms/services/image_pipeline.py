"""
Image rehosting pipeline.

Downloads remote images and stores a normalized local copy in the uploads
directory so that imported content never hotlinks third-party hosts.

For every image:
1. Fetch with a browser User-Agent and a bounded timeout
2. Pick an extension (URL path, then Content-Type, then "jpg")
3. Raster images: decode, fit inside MAX_EDGE x MAX_EDGE without upscaling,
   re-encode as JPEG. SVG bytes are stored untouched.
4. Write to a collision-resistant filename with exclusive create
5. Return a RehostedImage; failures are reported on the result, never raised

rehost_images() runs a batch concurrently under a semaphore and reports
progress after each item completes.
"""

import asyncio
import logging
import mimetypes
import re
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

import httpx
from django.conf import settings
from PIL import Image, UnidentifiedImageError

from cms.exceptions import DownloadError
from cms.fetchers.page_renderer import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "svg"}

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
}

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

ProgressCallback = Callable[[Dict[str, object]], None]


@dataclass
class ImageRequest:
    """One image to rehost, with an optional preferred filename."""

    url: str
    filename: Optional[str] = None


@dataclass
class RehostedImage:
    """Outcome of rehosting a single image."""

    original_url: str
    stored_path: str = ""
    public_url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    success: bool = False
    error_message: Optional[str] = None
    size: int = 0
    mimetype: str = ""

    @property
    def filename(self) -> str:
        return Path(self.stored_path).name if self.stored_path else ""


def extension_from_url(url: str) -> Optional[str]:
    """Return the allow-listed extension of a URL or filename, if any."""
    if not url:
        return None
    suffix = PurePosixPath(urlparse(url).path).suffix.lower().lstrip(".")
    return suffix if suffix in ALLOWED_EXTENSIONS else None


def extension_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    return CONTENT_TYPE_EXTENSIONS.get(content_type.split(";")[0].strip().lower())


class ImagePipeline:
    """
    Rehosts remote (or bundled local) images into the uploads directory.

    Defaults come from the CMS_* settings; every one can be overridden per
    instance. Pass an httpx transport to route downloads through something
    other than the network.
    """

    def __init__(
        self,
        upload_dir: Optional[Union[str, Path]] = None,
        public_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        max_edge: Optional[int] = None,
        quality: Optional[int] = None,
        concurrency: Optional[int] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upload_dir = Path(upload_dir or getattr(settings, "CMS_UPLOADS_DIR", "uploads"))
        prefix = public_prefix or getattr(settings, "CMS_UPLOADS_URL", "/uploads/")
        self.public_prefix = prefix if prefix.endswith("/") else f"{prefix}/"
        self.timeout = timeout or getattr(settings, "CMS_IMAGE_TIMEOUT", 30)
        self.max_edge = max_edge or getattr(settings, "CMS_IMAGE_MAX_EDGE", 1920)
        self.quality = quality or getattr(settings, "CMS_IMAGE_JPEG_QUALITY", 85)
        self.concurrency = max(1, concurrency or getattr(settings, "CMS_REHOST_CONCURRENCY", 8))
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def rehost_image(
        self, source_url: str, suggested_filename: Optional[str] = None
    ) -> RehostedImage:
        """Download one image and store a normalized local copy."""
        async with self._client() as client:
            return await self._rehost(client, source_url, suggested_filename)

    async def rehost_images(
        self,
        items: Sequence[Union[str, ImageRequest]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[RehostedImage]:
        """
        Rehost a batch of images concurrently.

        Args:
            items: URLs or ImageRequest objects
            on_progress: Called after each completion with
                {"completed", "total", "current"} plus "error" on failure

        Returns:
            One RehostedImage per input item, in input order
        """
        requests = [
            item if isinstance(item, ImageRequest) else ImageRequest(url=item)
            for item in items
        ]
        total = len(requests)
        if not total:
            return []

        results: List[Optional[RehostedImage]] = [None] * total
        semaphore = asyncio.Semaphore(self.concurrency)
        completed = 0

        async with self._client() as client:

            async def worker(index: int, request: ImageRequest):
                nonlocal completed
                async with semaphore:
                    result = await self._rehost(client, request.url, request.filename)
                results[index] = result
                completed += 1

                if on_progress is not None:
                    progress = {"completed": completed, "total": total, "current": request.url}
                    if not result.success:
                        progress["error"] = result.error_message
                    on_progress(progress)

            await asyncio.gather(*(worker(i, request) for i, request in enumerate(requests)))

        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Rehosted {succeeded}/{total} images")
        return results

    def copy_local_image(
        self, source_path: Union[str, Path], suggested_filename: Optional[str] = None
    ) -> RehostedImage:
        """
        Store a local image file (e.g. one bundled with a theme) the same way
        a downloaded image would be stored.
        """
        source_path = Path(source_path)
        try:
            data = source_path.read_bytes()
        except OSError as e:
            logger.warning(f"Failed to read local image {source_path}: {e}")
            return RehostedImage(original_url=str(source_path), error_message=str(e))

        content_type, _ = mimetypes.guess_type(source_path.name)
        try:
            return self._store(
                str(source_path), data, content_type, suggested_filename or source_path.name
            )
        except (DownloadError, OSError) as e:
            logger.warning(f"Failed to copy local image {source_path}: {e}")
            return RehostedImage(original_url=str(source_path), error_message=str(e))

    def delete_image(self, stored_path: Union[str, Path]) -> bool:
        """
        Delete a stored image.

        Only files inside the uploads directory are ever removed.

        Returns:
            True if a file was deleted
        """
        path = Path(stored_path).resolve()
        if self.upload_dir.resolve() not in path.parents:
            logger.warning(f"Refusing to delete {path}: outside uploads directory")
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Deleted image {path.name}")
        return True

    async def _rehost(
        self, client: httpx.AsyncClient, source_url: str, suggested_filename: Optional[str]
    ) -> RehostedImage:
        try:
            data, content_type = await self._download(client, source_url)
            return self._store(source_url, data, content_type, suggested_filename)
        except (DownloadError, OSError) as e:
            logger.warning(f"Failed to rehost image {source_url}: {e}")
            return RehostedImage(original_url=source_url, error_message=str(e))

    async def _download(self, client: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise DownloadError(f"Timed out after {self.timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadError(f"Failed to download: {e}") from e

        if not response.is_success:
            raise DownloadError(f"Failed to download: {response.status_code}")

        return response.content, response.headers.get("content-type", "")

    def _store(
        self,
        source_url: str,
        data: bytes,
        content_type: Optional[str],
        suggested_filename: Optional[str],
    ) -> RehostedImage:
        extension = (
            extension_from_url(source_url)
            or extension_from_content_type(content_type)
            or "jpg"
        )

        if extension == "svg":
            payload, width, height = data, None, None
            mimetype = "image/svg+xml"
        else:
            payload, width, height = self._normalize_raster(data)
            extension = "jpg"
            mimetype = "image/jpeg"

        filename = self._unique_filename(suggested_filename, extension)
        path = self._write(filename, payload)

        return RehostedImage(
            original_url=source_url,
            stored_path=str(path),
            public_url=f"{self.public_prefix}{filename}",
            width=width,
            height=height,
            success=True,
            size=len(payload),
            mimetype=mimetype,
        )

    def _normalize_raster(self, data: bytes) -> Tuple[bytes, int, int]:
        """Fit inside max_edge x max_edge (never upscale) and encode as JPEG."""
        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                img.thumbnail((self.max_edge, self.max_edge), Image.Resampling.LANCZOS)

                if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                    rgba = img.convert("RGBA")
                    flattened = Image.new("RGB", rgba.size, (255, 255, 255))
                    flattened.paste(rgba, mask=rgba.split()[-1])
                    img = flattened
                elif img.mode != "RGB":
                    img = img.convert("RGB")

                buffer = BytesIO()
                img.save(buffer, format="JPEG", quality=self.quality, optimize=True)
                return buffer.getvalue(), img.width, img.height
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise DownloadError(f"Not a decodable image: {e}") from e

    def _unique_filename(self, suggested_filename: Optional[str], extension: str) -> str:
        if suggested_filename:
            stem = UNSAFE_FILENAME_CHARS.sub("-", Path(suggested_filename).stem).strip("-.")
            name = f"{stem or 'image'}.{extension}"
        else:
            name = f"{uuid.uuid4()}.{extension}"
        return f"{uuid.uuid4().hex[:12]}-{name}"

    def _write(self, filename: str, payload: bytes) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path = self.upload_dir / filename
        with open(path, "xb") as fh:
            fh.write(payload)
        return path
