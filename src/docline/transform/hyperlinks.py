"""Replace anchors with hyperlink placeholder spans."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docline.transform.dom import iter_elements, make_element, replace_with
from docline.transform.images import encode_uri_component
from docline.transform.marker_constants import (
    HYPERLINK_CLASS,
    HYPERLINK_PREFIX,
    SCHEME_PATTERN,
    ZWSP,
)

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)


def normalise_href(href: str) -> str | None:
    """Trim *href* and default it to ``http://`` when it has no known scheme.

    Returns None for an empty or whitespace-only href.
    """
    href = (href or "").strip()
    if not href:
        return None
    if not SCHEME_PATTERN.match(href):
        href = f"http://{href}"
    return href


def replace_hyperlinks(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Replace each ``<a href>`` with ZWSP + hyperlink span + ZWSP.

    The span's text is the anchor's text, or the href when the anchor has
    none.  Anchors with a blank href are left untouched.

    Returns:
        True if any anchor was replaced.
    """
    replaced = 0
    for anchor in iter_elements(root, "a"):
        href = normalise_href(anchor.get("href") or "")
        if href is None or anchor.getparent() is None:
            continue
        span = make_element("span", anchor.text_content() or href)
        token = f"{HYPERLINK_PREFIX}{encode_uri_component(href)}"
        span.set("class", f"{HYPERLINK_CLASS} {token}")
        replace_with(anchor, [ZWSP, span, ZWSP])
        replaced += 1

    if replaced:
        logger.debug("Replaced %d hyperlink(s)", replaced)
    return replaced > 0
