"""Rewrite aligned blocks into the host's alignment wrapper tags.

The host editor represents alignment with one of four wrapper elements
(``<center>``, ``<right>``, ``<justify>``, ``<left>``) around a line.  An
aligned block keeps only its content; aligned headings keep their tag and
are wrapped instead, so the heading attribute survives.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from docline.transform.dom import (
    has_ancestor,
    insert_after,
    iter_elements,
    make_element,
    move_content,
    remove_style_properties,
    replace_with,
    wrap,
)
from docline.transform.marker_constants import ALIGN_WRAPPER_TAGS, HEADING_TAGS

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)

_TEXT_ALIGN = re.compile(r"text-align\s*:\s*(\w+)", re.IGNORECASE)

# Recognised values -> wrapper tag.  "left"/"start" are the host default and
# never produce a wrapper.
_NEVER_WRAPPED = frozenset(("html", "body"))

_ALIGN_MAP = {
    "center": "center",
    "right": "right",
    "justify": "justify",
    "left": None,
    "start": None,
}


def alignment_of(el: HtmlElement) -> str | None:
    """Return the wrapper tag *el* should be aligned with, or None.

    The ``align`` attribute wins over an inline ``text-align`` declaration.
    Elements inside tables are never aligned: table cells carry their own
    column formatting.
    """
    value = (el.get("align") or "").strip().lower()
    if not value:
        match = _TEXT_ALIGN.search(el.get("style") or "")
        value = match.group(1).lower() if match else ""
    tag = _ALIGN_MAP.get(value)
    if tag is None or has_ancestor(el, ("table",)):
        return None
    return tag


def will_wrap(el: HtmlElement) -> bool:
    """True if ``wrap_alignment`` will wrap *el* itself.

    An aligned element inside a wrapper, or inside another aligned block, is
    swallowed by the outer wrapper and never gets one of its own.
    """
    if alignment_of(el) is None:
        return False
    for anc in el.iterancestors():
        if anc.tag in ALIGN_WRAPPER_TAGS:
            return False
        if anc.tag not in _NEVER_WRAPPED and alignment_of(anc) is not None:
            return False
    return True


def strip_alignment(el: HtmlElement) -> bool:
    """Drop *el*'s ``align`` attribute and ``text-align`` style."""
    removed = el.attrib.pop("align", None) is not None
    return remove_style_properties(el, "text-align") or removed


def wrap_alignment(root: HtmlElement, options: TransformOptions | None = None) -> bool:
    """Replace every aligned block with an alignment wrapper plus ``<br>``.

    Idempotent: wrapper tags, and anything already inside one, are skipped.

    Returns:
        True if any element was wrapped.
    """
    wrapped = 0
    for el in iter_elements(root):
        if el.tag in ALIGN_WRAPPER_TAGS or el.tag in _NEVER_WRAPPED:
            continue
        style = (el.get("style") or "").lower()
        if el.get("align") is None and "text-align" not in style:
            continue
        if has_ancestor(el, ALIGN_WRAPPER_TAGS):
            continue
        tag = alignment_of(el)
        if tag is None:
            continue

        wrapper = make_element(tag)
        if el.tag in HEADING_TAGS:
            wrap(el, wrapper)
            strip_alignment(el)
        else:
            move_content(el, wrapper)
            replace_with(el, [wrapper])
        insert_after(wrapper, make_element("br"))
        wrapped += 1

    if wrapped:
        logger.debug("Wrapped %d aligned block(s)", wrapped)
    return wrapped > 0
