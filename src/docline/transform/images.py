"""Replace ``<img>`` elements with image placeholder spans.

The host cannot hold ``<img>`` in a line.  Each image becomes a span whose
only text is a zero-width space and whose class tokens carry the source,
dimensions, aspect ratio and a fresh identifier; the span is flanked by a
zero-width space on each side so the host can find placeholder boundaries.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import quote

from docline.transform.dom import (
    get_classes,
    get_style,
    iter_elements,
    make_element,
    replace_with,
)
from docline.transform.marker_constants import (
    IMAGE_ASPECT_PREFIX,
    IMAGE_BASE_CLASSES,
    IMAGE_HEIGHT_PREFIX,
    IMAGE_ID_ATTR,
    IMAGE_ID_PREFIX,
    IMAGE_PREFIX,
    IMAGE_WIDTH_PREFIX,
    ZWSP,
)
from docline.transform.options import TransformOptions

if TYPE_CHECKING:
    from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

# encodeURIComponent leaves these unescaped
URI_COMPONENT_SAFE = "-_.!~*'()"

_CSS_RULE = re.compile(r"\.([^,{\s]+)\s*\{([^}]*)")
_CSS_WIDTH = re.compile(r"width\s*:\s*([^;]+)", re.IGNORECASE)
_CSS_HEIGHT = re.compile(r"height\s*:\s*([^;]+)", re.IGNORECASE)
_PLAIN_DIMENSION = re.compile(r"^([0-9]+(?:\.[0-9]+)?)(px)?$", re.IGNORECASE)
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+))")


def encode_uri_component(value: str) -> str:
    return quote(value, safe=URI_COMPONENT_SAFE)


def css_image_sizes(root: HtmlElement) -> dict[str, tuple[str | None, str | None]]:
    """Map class name -> (width, height) declared in the document's ``<style>``.

    Only simple ``.class { ... }`` rules are read; LibreOffice emits image
    sizes that way when it does not put them on the ``<img>`` itself.
    """
    sizes: dict[str, tuple[str | None, str | None]] = {}
    for style in root.iter("style"):
        for rule in (style.text_content() or "").split("}"):
            match = _CSS_RULE.search(rule)
            if not match:
                continue
            decls = match.group(2)
            width = _CSS_WIDTH.search(decls)
            height = _CSS_HEIGHT.search(decls)
            if width or height:
                sizes[match.group(1).strip()] = (
                    width.group(1).strip() if width else None,
                    height.group(1).strip() if height else None,
                )
    return sizes


def normalise_dimension(value: str | None) -> str | None:
    """``"100"`` and ``"100px"`` -> ``"100px"``; other units pass through."""
    if not value:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    match = _PLAIN_DIMENSION.match(trimmed)
    if match:
        return f"{match.group(1)}px"
    return trimmed


def _leading_number(value: str | None) -> float | None:
    match = _LEADING_FLOAT.match(value or "")
    return float(match.group(1)) if match else None


def aspect_ratio(width: str | None, height: str | None) -> str | None:
    """Width / height to four decimals when both are positive numbers."""
    num_w = _leading_number(width)
    num_h = _leading_number(height)
    if num_w is None or num_h is None or num_w <= 0 or num_h <= 0:
        return None
    return f"{num_w / num_h:.4f}"


def _dimensions(
    img: HtmlElement, css_sizes: dict[str, tuple[str | None, str | None]]
) -> tuple[str | None, str | None]:
    width = img.get("width") or get_style(img, "width") or None
    height = img.get("height") or get_style(img, "height") or None
    if width and height:
        return width, height

    for cls in get_classes(img):
        if cls not in css_sizes:
            continue
        css_w, css_h = css_sizes[cls]
        width = width or css_w
        height = height or css_h
        if width and height:
            break
    return width, height


def build_image_placeholder(
    src: str | None,
    width: str | None,
    height: str | None,
    image_id: str,
) -> HtmlElement:
    """Build the placeholder span for one image (without its flanking text)."""
    classes = list(IMAGE_BASE_CLASSES)
    if src:
        classes.append(f"{IMAGE_PREFIX}{encode_uri_component(src)}")

    width_px = normalise_dimension(width)
    height_px = normalise_dimension(height)
    if width_px:
        classes.append(f"{IMAGE_WIDTH_PREFIX}{width_px}")
    if height_px:
        classes.append(f"{IMAGE_HEIGHT_PREFIX}{height_px}")
    ratio = aspect_ratio(width_px, height_px)
    if ratio:
        classes.append(f"{IMAGE_ASPECT_PREFIX}{ratio}")
    classes.append(f"{IMAGE_ID_PREFIX}{image_id}")

    span = make_element("span", ZWSP)
    span.set("class", " ".join(classes))
    span.set(IMAGE_ID_ATTR, image_id)
    return span


def replace_images(root: HtmlElement, options: TransformOptions | None = None) -> bool:
    """Replace every ``<img>`` with ZWSP + placeholder span + ZWSP.

    A source the resolver cannot resolve is recorded as written; an image
    without a source still gets a placeholder, just without an ``image:``
    token.

    Returns:
        True if any image was replaced.
    """
    options = options or TransformOptions()
    images = list(iter_elements(root, "img"))
    if not images:
        return False

    css_sizes = css_image_sizes(root)
    logger.debug(
        "Replacing %d image(s); %d CSS size rule(s)", len(images), len(css_sizes)
    )

    for index, img in enumerate(images, start=1):
        src = (img.get("src") or "").strip()
        resolved = src
        if src:
            resolved = options.image_resolver.resolve(src)
            if resolved is None:
                logger.warning(
                    "Image %d/%d: could not resolve %r, keeping original source",
                    index,
                    len(images),
                    src[:80],
                )
                resolved = src
        else:
            logger.warning("Image %d/%d has no src", index, len(images))

        width, height = _dimensions(img, css_sizes)
        span = build_image_placeholder(resolved, width, height, options.new_image_id())
        replace_with(img, [ZWSP, span, ZWSP])

    return True
