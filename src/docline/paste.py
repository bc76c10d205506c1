"""Clipboard paste handling.

A paste runs the same transform stages as an import, with two differences:

* simple fragments (plain text, a lone image) are left for the host's own
  paste handling, see ``needs_transformation``;
* a paste whose caret sits inside a flattened table line cannot insert
  HTML.  It is planned as a list of plain-text insertions with attributes
  instead, confined to the one cell under the caret (``plan_cell_paste``).
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from selectolax.lexbor import LexborHTMLParser

from docline.transform.dom import find_class_value
from docline.transform.hyperlinks import normalise_href
from docline.transform.images import encode_uri_component
from docline.transform.marker_constants import (
    DELIMITER,
    HYPERLINK_PREFIX,
    IMAGE_ASPECT_PREFIX,
    IMAGE_HEIGHT_PREFIX,
    IMAGE_ID_PREFIX,
    IMAGE_PREFIX,
    IMAGE_WIDTH_PREFIX,
    ZWSP,
)
from docline.transform.options import TransformOptions
from docline.transform.pipeline import TransformResult, transform_html

logger = logging.getLogger(__name__)

# The host's table plugin refuses cells longer than this.
MAX_CELL_LENGTH = 8000

# Any one of these makes a fragment worth transforming.
_TRANSFORM_SELECTORS = (
    "h1, h2, h3, h4, h5, h6",
    '[style*="text-align"], [align]',
    "ol",
    "a[href]",
    "table",
    '[style*="color"], font[color], [style*="font-size"]',
)

_SKIPPED_TAGS = frozenset(("script", "style", "noscript", "template"))
_LINE_BREAKS = re.compile(r"\r\n|\n|\r")
_WHITESPACE_RUN = re.compile(r"\s+")

_IMAGE_ATTRIBUTE_PREFIXES = (
    ("image-width", IMAGE_WIDTH_PREFIX),
    ("image-height", IMAGE_HEIGHT_PREFIX),
    ("imageCssAspectRatio", IMAGE_ASPECT_PREFIX),
    ("image-id", IMAGE_ID_PREFIX),
)

type Attribute = tuple[str, str]


# ---------------------------------------------------------------------------
# Whole-fragment transformation
# ---------------------------------------------------------------------------
def needs_transformation(html: str) -> bool:
    """True when *html* holds anything the transform stages rewrite.

    An image counts only when the fragment also has text; a lone image is
    handled by the host's image plugin.
    """
    if not html or not html.strip():
        return False
    tree = LexborHTMLParser(html)
    if any(tree.css_first(selector) is not None for selector in _TRANSFORM_SELECTORS):
        return True
    root = tree.body if tree.body is not None else tree.root
    text = (root.text() if root is not None else "") or ""
    return tree.css_first("img") is not None and bool(text.strip())


def transform_paste(
    html: str, options: TransformOptions | None = None
) -> TransformResult:
    """Transform clipboard HTML, returning only the body content.

    Fragments that do not need transformation come back unchanged with
    ``modified=False``.
    """
    if not needs_transformation(html):
        logger.debug("Paste needs no transformation (%d chars)", len(html or ""))
        return TransformResult(html=html, modified=False)

    if options is None:
        options = TransformOptions(env="paste")
    elif options.env != "paste":
        options = dataclasses.replace(options, env="paste")
    return transform_html(html, options, fragment=True)


# ---------------------------------------------------------------------------
# Segments: the paste as a run of attributed plain text
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PasteSegment:
    """A run of pasted text with at most one link, or one image placeholder."""

    text: str
    url: str | None = None
    is_image: bool = False
    image_url: str | None = None
    image_classes: str = ""

    @property
    def attributes(self) -> list[Attribute]:
        if self.is_image:
            return image_attributes(self)
        if self.url:
            return [("hyperlink", self.url)]
        return []


def _anchor_url(attrs: dict[str, Any]) -> str | None:
    href = (attrs.get("href") or "").strip()
    if not href or href.lower().startswith("javascript:"):
        return None
    return normalise_href(href)


def extract_paste_segments(html: str) -> list[PasteSegment]:
    """Split transformed paste HTML into text, link and image segments.

    Links are recognised both as raw ``<a href>`` and as hyperlink
    placeholder spans.  Image placeholder spans become a single-ZWSP image
    segment; their content is not descended into.
    """
    tree = LexborHTMLParser(html or "")
    root = tree.body if tree.body is not None else tree.root
    if root is None:
        return []

    segments: list[PasteSegment] = []

    def walk(node: Any, url: str | None) -> None:
        tag = node.tag
        if tag == "-text":
            segments.append(PasteSegment(text=node.text_content or "", url=url))
            return
        if tag in _SKIPPED_TAGS:
            return

        attrs = node.attributes or {}
        classes = (attrs.get("class") or "").split()
        if tag == "a":
            url = _anchor_url(attrs) or url
        if url is None:
            encoded = find_class_value(classes, HYPERLINK_PREFIX)
            if encoded:
                url = unquote(encoded)

        if "inline-image" in classes:
            encoded_src = find_class_value(classes, IMAGE_PREFIX)
            if encoded_src:
                segments.append(
                    PasteSegment(
                        text=ZWSP,
                        is_image=True,
                        image_url=unquote(encoded_src),
                        image_classes=" ".join(classes),
                    )
                )
            return

        child = node.child
        while child is not None:
            walk(child, url)
            child = child.next

    child = root.child
    while child is not None:
        walk(child, None)
        child = child.next

    if not segments:
        text = root.text() or ""
        if text:
            segments.append(PasteSegment(text=text))
    return segments


def sanitise_segment_text(text: str) -> str:
    """Flatten one text segment to a single trimmed line.

    Zero-width spaces are not whitespace and survive, so the markers
    flanking a placeholder reach the cell intact.
    """
    text = _LINE_BREAKS.sub(" ", text or "")
    text = text.replace(DELIMITER, " ").replace("\t", " ")
    return _WHITESPACE_RUN.sub(" ", text).strip()


def _is_placeholder(segment: PasteSegment | None) -> bool:
    return segment is not None and (segment.is_image or segment.url is not None)


def sanitise_segments(segments: list[PasteSegment]) -> list[PasteSegment]:
    """Sanitise text segments and drop the ones left empty.

    Image segments keep their exact ZWSP text.  A segment holding nothing
    but zero-width spaces is kept only next to an image or hyperlink, where
    it is that placeholder's flank.
    """
    cleaned: list[PasteSegment] = []
    for index, segment in enumerate(segments):
        if segment.is_image:
            cleaned.append(dataclasses.replace(segment, text=ZWSP))
            continue
        text = sanitise_segment_text(segment.text)
        if not text:
            continue
        if not text.replace(ZWSP, "").strip():
            before = segments[index - 1] if index > 0 else None
            after = segments[index + 1] if index + 1 < len(segments) else None
            if not (_is_placeholder(before) or _is_placeholder(after)):
                continue
        cleaned.append(dataclasses.replace(segment, text=text))
    return cleaned


def image_attributes(segment: PasteSegment) -> list[Attribute]:
    """Character attributes for an image segment, source first."""
    attributes: list[Attribute] = []
    if segment.image_url:
        attributes.append(("image", encode_uri_component(segment.image_url)))
    classes = segment.image_classes.split()
    for name, prefix in _IMAGE_ATTRIBUTE_PREFIXES:
        value = find_class_value(classes, prefix)
        if value:
            attributes.append((name, value))
    return attributes


# ---------------------------------------------------------------------------
# Table-cell geometry
# ---------------------------------------------------------------------------
def cell_ranges(line_text: str) -> list[tuple[int, int, int]]:
    """``(start, end, column)`` for every non-empty cell of a table line.

    The host applies its per-cell ``td`` attribute over these ranges after a
    rich paste lands table lines.
    """
    ranges = []
    offset = 0
    for column, cell in enumerate(line_text.split(DELIMITER)):
        if cell:
            ranges.append((offset, offset + len(cell), column))
        offset += len(cell) + len(DELIMITER)
    return ranges


def locate_cell(line_text: str, column: int) -> tuple[int, int, int] | None:
    """``(cell_index, start, end)`` of the cell containing text offset *column*.

    An offset on a boundary belongs to the cell on its left.  None when the
    offset lies past the end of the line.
    """
    offset = 0
    for index, cell in enumerate(line_text.split(DELIMITER)):
        end = offset + len(cell)
        if offset <= column <= end:
            return index, offset, end
        offset = end + len(DELIMITER)
    return None


# ---------------------------------------------------------------------------
# Planning a paste into one cell
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CellInsertion:
    """Insert *text* at line offset *column* and give it *attributes*."""

    column: int
    text: str
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True)
class CellPastePlan:
    """Edits for a paste confined to one table cell.

    Apply in order: delete ``[replace_start, replace_end)``, then each
    insertion, then re-assert the line's ``tbljson`` attribute.  The caret
    ends at ``caret``.
    """

    cell_index: int
    replace_start: int
    replace_end: int
    insertions: tuple[CellInsertion, ...]
    caret: int


def _needs_separator(previous: PasteSegment, current: PasteSegment) -> bool:
    # Placeholders must stay exactly ZWSP-span-ZWSP.
    if previous.is_image or current.is_image:
        return False
    if previous.text.endswith(ZWSP) or current.text.startswith(ZWSP):
        return False
    return (
        bool(previous.text)
        and bool(current.text)
        and not previous.text[-1].isspace()
        and not current.text[0].isspace()
    )


def plan_cell_paste(
    line_text: str, sel_start: int, sel_end: int, html: str
) -> CellPastePlan | None:
    """Plan a paste of transformed *html* over ``[sel_start, sel_end)``.

    Args:
        line_text: Current text of the table line (cells joined by
            ``DELIMITER``).
        sel_start: Selection start offset within the line.
        sel_end: Selection end offset within the line.
        html: Paste HTML after ``transform_paste`` (and image inlining).

    Returns:
        The plan, or None when the paste must be refused: the selection
        leaves its cell, nothing is left after sanitising, or the cell is
        already at ``MAX_CELL_LENGTH``.
    """
    sel_start, sel_end = min(sel_start, sel_end), max(sel_start, sel_end)
    located = locate_cell(line_text, sel_start)
    if located is None or sel_end > located[2]:
        logger.warning("Paste selection extends outside its table cell, aborting")
        return None
    cell_index, cell_start, cell_end = located

    segments = sanitise_segments(extract_paste_segments(html))
    if not segments:
        logger.debug("No text left after sanitising paste, aborting")
        return None

    cell_length = cell_end - cell_start
    if MAX_CELL_LENGTH - (cell_length - (sel_end - sel_start)) <= 0:
        logger.info("Table cell %d is at its maximum length, aborting", cell_index)
        return None

    insertions: list[CellInsertion] = []
    column = sel_start
    previous: PasteSegment | None = None
    for segment in segments:
        if previous is not None and _needs_separator(previous, segment):
            insertions.append(CellInsertion(column, " "))
            column += 1
        insertions.append(
            CellInsertion(column, segment.text, tuple(segment.attributes))
        )
        column += len(segment.text)
        previous = segment

    logger.debug(
        "Planned %d insertion(s) into cell %d", len(insertions), cell_index
    )
    return CellPastePlan(
        cell_index=cell_index,
        replace_start=sel_start,
        replace_end=sel_end,
        insertions=tuple(insertions),
        caret=column,
    )
