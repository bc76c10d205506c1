"""Inline remote images in pasted content.

Pasted HTML often points at images on third-party hosts.  Those URLs are
not stable and may not be reachable by other collaborators, so after the
transform stages run, every placeholder whose source is an http(s) URL is

1. fetched directly, or through a same-origin proxy when the direct fetch
   fails;
2. uploaded to the document's own storage through an ``ImageUploader``;
3. rewritten to point at the uploaded copy, with any missing width, height
   and aspect-ratio tokens filled in from the image's intrinsic size.

Images are independent, so they are processed concurrently, bounded by a
semaphore.  A failure affects only that image: its placeholder keeps the
original source and the failure is counted in the ``ImageInlineReport``.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Protocol
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from docline.transform.dom import (
    find_class_value,
    get_classes,
    inner_html,
    iter_elements,
    parse_fragment,
    set_classes,
)
from docline.transform.images import encode_uri_component
from docline.transform.marker_constants import (
    IMAGE_ASPECT_PREFIX,
    IMAGE_HEIGHT_PREFIX,
    IMAGE_PREFIX,
    IMAGE_WIDTH_PREFIX,
)

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.config import ImagesConfig

logger = logging.getLogger(__name__)

_REMOTE_SOURCE = re.compile(r"^https?:", re.IGNORECASE)

type ProgressCallback = Callable[[int, int], None]


class ImageFetchError(Exception):
    """A remote image could not be fetched directly or through the proxy."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Could not fetch {url}: {reason}")


class ImageUploader(Protocol):
    """Stores image bytes and returns the public URL of the stored copy."""

    async def upload(self, data: bytes, filename: str, content_type: str) -> str | None:
        """Return the public URL, or None if the upload failed."""
        ...


class PresignedUploader:
    """Uploads through a presign endpoint and a signed ``PUT``.

    The presign endpoint is called as ``GET <presign_url>?name=...&type=...``
    and must answer ``{"signedUrl": ..., "publicUrl": ...}``.
    """

    def __init__(self, client: httpx.AsyncClient, presign_url: str) -> None:
        self._client = client
        self._presign_url = presign_url

    async def upload(self, data: bytes, filename: str, content_type: str) -> str | None:
        try:
            presign = await self._client.get(
                self._presign_url, params={"name": filename, "type": content_type}
            )
            presign.raise_for_status()
            payload = presign.json()
            signed_url = payload.get("signedUrl")
            public_url = payload.get("publicUrl")
            if not signed_url or not public_url:
                logger.warning("Invalid presign response for %s", filename)
                return None

            stored = await self._client.put(
                signed_url, content=data, headers={"Content-Type": content_type}
            )
            stored.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Upload of %s failed: HTTP %d", filename, exc.response.status_code
            )
            return None
        except (httpx.RequestError, ValueError, AttributeError) as exc:
            logger.warning("Upload of %s failed: %s", filename, exc)
            return None
        return public_url


@dataclass
class ImageInlineReport:
    """Outcome of one inlining run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed


def upload_filename(url: str, content_type: str) -> str:
    """File name for the uploaded copy: the URL's last path segment.

    A name without an extension gets one from *content_type* (``png`` when
    that says nothing useful).
    """
    name = PurePosixPath(unquote(urlparse(url).path)).name
    if not name:
        name = f"image-{int(time.time() * 1000)}"
    if "." not in name:
        subtype = content_type.split("/", 1)[1] if "/" in content_type else ""
        name = f"{name}.{subtype or 'png'}"
    return name


def intrinsic_size(data: bytes) -> tuple[int, int] | None:
    """Pixel width and height of an encoded image, or None if unreadable."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError):
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height


def apply_uploaded_source(
    span: HtmlElement, public_url: str, size: tuple[int, int] | None
) -> None:
    """Point *span* at *public_url* and fill in missing size tokens."""
    classes = [
        f"{IMAGE_PREFIX}{encode_uri_component(public_url)}"
        if cls.startswith(IMAGE_PREFIX)
        else cls
        for cls in get_classes(span)
    ]
    if size is not None:
        width, height = size
        additions = (
            (IMAGE_WIDTH_PREFIX, f"{width}px"),
            (IMAGE_HEIGHT_PREFIX, f"{height}px"),
            (IMAGE_ASPECT_PREFIX, f"{width / height:.4f}"),
        )
        for prefix, value in additions:
            if find_class_value(classes, prefix) is None:
                classes.append(f"{prefix}{value}")
    set_classes(span, classes)


class RemoteImageInliner:
    """Fetches, uploads and rewrites remote image placeholders."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        uploader: ImageUploader,
        *,
        proxy_url: str | None = None,
        timeout: float = 10.0,
        max_concurrency: int = 4,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._client = client
        self._uploader = uploader
        self._proxy_url = proxy_url
        self._timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._on_progress = on_progress

    @classmethod
    def from_config(
        cls,
        client: httpx.AsyncClient,
        uploader: ImageUploader,
        config: ImagesConfig,
        on_progress: ProgressCallback | None = None,
    ) -> RemoteImageInliner:
        return cls(
            client,
            uploader,
            proxy_url=config.proxy_url,
            timeout=config.fetch_timeout_seconds,
            max_concurrency=config.max_concurrency,
            on_progress=on_progress,
        )

    async def fetch(self, url: str) -> tuple[bytes, str]:
        """Return the image bytes and content type.

        Raises:
            ImageFetchError: If neither the direct fetch nor the proxy
                produced a non-empty body within the timeout.
        """
        try:
            response = await self._client.get(url, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            if not self._proxy_url:
                raise ImageFetchError(url, str(exc) or type(exc).__name__) from exc
            logger.debug("Direct fetch of %s failed (%s), trying proxy", url, exc)
            try:
                response = await self._client.get(
                    self._proxy_url, params={"url": url}, timeout=self._timeout
                )
                response.raise_for_status()
            except httpx.HTTPError as proxy_exc:
                reason = f"direct: {exc}; proxy: {proxy_exc}"
                raise ImageFetchError(url, reason) from proxy_exc

        if not response.content:
            raise ImageFetchError(url, "empty response body")
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        return response.content, content_type

    async def inline_span(self, span: HtmlElement, url: str) -> bool:
        """Fetch, upload and rewrite one placeholder. True on success."""
        async with self._semaphore:
            try:
                data, content_type = await self.fetch(url)
            except ImageFetchError as exc:
                logger.warning("%s", exc)
                return False

            filename = upload_filename(url, content_type)
            public_url = await self._uploader.upload(
                data, filename, content_type or "application/octet-stream"
            )
            if not public_url:
                logger.warning("Upload of %s returned no URL, skipping image", url)
                return False

        apply_uploaded_source(span, public_url, intrinsic_size(data))
        logger.debug("Inlined %s -> %s", url, public_url)
        return True

    async def inline_tree(self, root: HtmlElement) -> ImageInlineReport:
        """Inline every remote placeholder under *root* in place."""
        targets: list[tuple[HtmlElement, str]] = []
        for span in iter_elements(root, "span"):
            encoded = find_class_value(get_classes(span), IMAGE_PREFIX)
            if encoded is None:
                continue
            url = unquote(encoded)
            if _REMOTE_SOURCE.match(url):
                targets.append((span, url))

        report = ImageInlineReport(total=len(targets))
        if not targets:
            return report

        async def run(span: HtmlElement, url: str) -> None:
            if await self.inline_span(span, url):
                report.succeeded += 1
            else:
                report.failed += 1
            if self._on_progress is not None:
                self._on_progress(report.processed, report.total)

        await asyncio.gather(*(run(span, url) for span, url in targets))
        logger.info(
            "Image processing complete: %d uploaded, %d failed",
            report.succeeded,
            report.failed,
        )
        return report

    async def inline_html(self, html: str) -> tuple[str, ImageInlineReport]:
        """Inline remote images in a paste fragment and reserialise it."""
        holder = parse_fragment(html)
        report = await self.inline_tree(holder)
        if not report.succeeded:
            return html, report
        return inner_html(holder), report


async def inline_remote_images(
    html: str,
    uploader: ImageUploader,
    *,
    client: httpx.AsyncClient | None = None,
    config: ImagesConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> tuple[str, ImageInlineReport]:
    """Inline the remote images of a transformed paste fragment.

    Uses *client* when given; otherwise a client is opened for this call.
    Settings come from *config*, or from ``get_settings().images``.
    """
    if config is None:
        from docline.config import get_settings

        config = get_settings().images

    if client is not None:
        inliner = RemoteImageInliner.from_config(client, uploader, config, on_progress)
        return await inliner.inline_html(html)

    async with httpx.AsyncClient(follow_redirects=True) as owned:
        inliner = RemoteImageInliner.from_config(owned, uploader, config, on_progress)
        return await inliner.inline_html(html)
