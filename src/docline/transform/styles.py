"""Quantise inline font colour and size onto the host's fixed palettes.

The host offers a handful of named colours and a short list of font sizes.
Arbitrary inline values are snapped to the nearest palette entry, recorded
as ``color:<name>`` / ``font-size:<n>`` class tokens, and the inline
declarations are removed so the host's own CSS does the rendering.

Tie-breaks are deterministic: palettes are scanned in the order they are
declared below, and an entry only replaces the current best when it is
strictly closer.  The earlier entry wins an exact tie.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from docline.transform.dom import (
    get_classes,
    get_style,
    iter_elements,
    remove_style_properties,
    set_classes,
)
from docline.transform.marker_constants import COLOR_PREFIX, FONT_SIZE_PREFIX

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)

type RGB = tuple[int, int, int]

# Declaration order is the tie-break order.
COLOR_PALETTE: dict[str, RGB] = {
    "black": (0, 0, 0),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
}
NAMED_COLORS: dict[str, RGB] = dict(COLOR_PALETTE)

FONT_SIZE_PALETTE = (8, 9, 10, 11, 12, 14, 16, 18, 20, 22, 24, 26, 28, 30, 35, 40)

# The host's defaults; quantising to these emits no token.
DEFAULT_COLOR = "black"
DEFAULT_FONT_SIZE = 14

PT_TO_PX = 1.333

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)
_RGB_COLOR = re.compile(r"rgb\s*\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)")
_FONT_SIZE = re.compile(r"^([0-9]*\.?[0-9]+)\s*(px|pt)?$", re.IGNORECASE)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_color(value: str | None) -> RGB | None:
    """Parse a named, hex (3/6 digit) or ``rgb()`` colour. None if unparseable."""
    if not value:
        return None
    s = value.strip().lower()
    if s in NAMED_COLORS:
        return NAMED_COLORS[s]
    match = _HEX_COLOR.match(s)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
    match = _RGB_COLOR.search(s)
    if match:
        r, g, b = (min(int(part), 255) for part in match.groups())
        return (r, g, b)
    return None


def nearest_color(rgb: RGB) -> str:
    """Name of the palette colour closest to *rgb* (Euclidean distance)."""
    best = next(iter(COLOR_PALETTE))
    best_dist = math.inf
    for name, candidate in COLOR_PALETTE.items():
        dist = math.dist(rgb, candidate)
        if dist < best_dist:
            best, best_dist = name, dist
    return best


def parse_font_size(value: str | None) -> int | None:
    """Parse ``12``, ``12px`` or ``9pt`` to whole pixels. None otherwise."""
    if not value:
        return None
    match = _FONT_SIZE.match(value.strip())
    if not match:
        return None
    size = float(match.group(1))
    if (match.group(2) or "").lower() == "pt":
        size = _round_half_up(size * PT_TO_PX)
    px = _round_half_up(size)
    return px if px > 0 else None


def nearest_font_size(px: int) -> int:
    best = FONT_SIZE_PALETTE[0]
    best_diff = abs(px - best)
    for size in FONT_SIZE_PALETTE:
        diff = abs(px - size)
        if diff < best_diff:
            best, best_diff = size, diff
    return best


def _set_token(classes: list[str], prefix: str, token: str | None) -> list[str]:
    kept = [cls for cls in classes if not cls.startswith(prefix)]
    if token is not None:
        kept.append(token)
    return kept


def quantize_element(el: HtmlElement) -> bool:
    """Quantise one element's colour and font size. True if it changed."""
    classes = get_classes(el)
    original = list(classes)
    strip: list[str] = []

    color_value = el.get("color") or get_style(el, "color")
    rgb = parse_color(color_value)
    if rgb is not None:
        name = nearest_color(rgb)
        token = None if name == DEFAULT_COLOR else f"{COLOR_PREFIX}{name}"
        classes = _set_token(classes, COLOR_PREFIX, token)
        strip.append("color")

    # Superscript/subscript keep the inherited baseline size.
    if el.tag not in ("sup", "sub"):
        px = parse_font_size(get_style(el, "font-size"))
        if px is not None:
            size = nearest_font_size(px)
            token = None if size == DEFAULT_FONT_SIZE else f"{FONT_SIZE_PREFIX}{size}"
            classes = _set_token(classes, FONT_SIZE_PREFIX, token)
            strip.append("font-size")

    if not strip:
        return False

    set_classes(el, classes)
    stripped = remove_style_properties(el, *strip)
    if "color" in strip and "color" in el.attrib:
        del el.attrib["color"]
        stripped = True
    return stripped or classes != original


def quantize_styles(root: HtmlElement, options: TransformOptions | None = None) -> bool:
    """Quantise every element with an inline colour or font size.

    Unparseable values are left exactly as they were.

    Returns:
        True if any element changed.
    """
    changed = 0
    for el in iter_elements(root):
        style = (el.get("style") or "").lower()
        has_color = "color" in style or el.get("color") is not None
        if not has_color and "font-size" not in style:
            continue
        if quantize_element(el):
            changed += 1

    if changed:
        logger.debug("Quantised colour/size on %d element(s)", changed)
    return changed > 0
