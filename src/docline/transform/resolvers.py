"""Image source resolution strategies.

The import path runs next to the converter's output directory and can read
the image files LibreOffice extracted; the paste path cannot, and leaves
sources alone (remote sources are inlined later by ``docline.remote_images``).
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_PASSTHROUGH_PREFIXES = ("http:", "https:", "data:", "/")


def is_relative_source(src: str) -> bool:
    """True for sources that must be resolved against the output directory."""
    return not src.lower().startswith(_PASSTHROUGH_PREFIXES)


class ImageResolver(Protocol):
    """Maps an ``<img src>`` to the source recorded in the placeholder."""

    def resolve(self, src: str) -> str | None:
        """Return the effective source, or None if it could not be resolved."""
        ...


class PassThroughImageResolver:
    """Leaves every source as it is."""

    def resolve(self, src: str) -> str | None:
        return src


class LocalFileImageResolver:
    """Inlines relative image paths as base64 data URIs.

    Absolute http(s), data and root-relative URLs pass through unchanged.
    A path that resolves outside *base_dir* is refused.
    """

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)

    def resolve(self, src: str) -> str | None:
        if not is_relative_source(src):
            return src

        image_path = (self._base_dir / src).resolve()
        if not image_path.is_relative_to(self._base_dir.resolve()):
            logger.warning("Image path escapes %s: %s", self._base_dir, src)
            return None
        try:
            data = image_path.read_bytes()
        except FileNotFoundError:
            logger.warning("Relative image not found: %s", image_path)
            return None
        except OSError as exc:
            logger.warning("Could not read image %s: %s", image_path, exc)
            return None

        mime_type = (
            mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
        )
        logger.debug(
            "Inlined %s (%d bytes) as %s", image_path.name, len(data), mime_type
        )
        return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
