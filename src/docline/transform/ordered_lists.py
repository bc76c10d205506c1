"""Flatten ordered lists into explicitly numbered editor lines.

The host numbers list lines from a running counter rather than from tree
structure, so nested ``<ol>``/``<li>`` markup cannot survive.  Each item
becomes one ``<div>`` with a literal ``"N. "`` prefix; nested items follow
their parent's line as siblings, indented by depth.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import TYPE_CHECKING

from docline.transform.dom import is_element, make_element, move_content, replace_with

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_DEFAULT_INDENT_EM = 1.5


def list_start(ol: HtmlElement) -> int:
    """Parse ``<ol start>`` like a browser would; anything non-numeric is 1."""
    match = _LEADING_INT.match(ol.get("start") or "")
    return int(match.group(1)) if match else 1


def outermost_descendants(root: HtmlElement, tag: str) -> list[HtmlElement]:
    """Descendants of *root* with *tag* that have no *tag* ancestor below *root*."""
    found = []
    for node in root.iter(tag):
        if node is root:
            continue
        ancestor = node.getparent()
        while ancestor is not None and ancestor is not root and ancestor.tag != tag:
            ancestor = ancestor.getparent()
        if ancestor is None or ancestor is root:
            found.append(node)
    return found


def _sole_paragraph(item: HtmlElement) -> HtmlElement | None:
    """The item's only child if that child is a ``<p>`` with nothing around it."""
    if len(item) != 1 or (item.text or "").strip():
        return None
    only = item[0]
    if only.tag != "p" or (only.tail or "").strip():
        return None
    return only


def flatten_list(
    ol: HtmlElement, depth: int = 0, indent_em: float = _DEFAULT_INDENT_EM
) -> list[HtmlElement]:
    """Return the line ``<div>``s for *ol* and every list nested inside it.

    Items are numbered from ``start`` in document order, one step per
    ``<li>``.  Nested lists are flattened first (at ``depth + 1``) and their
    lines placed directly after the line of the item containing them.
    """
    counter = list_start(ol)
    lines: list[HtmlElement] = []

    for child in ol:
        if not is_element(child) or child.tag != "li":
            continue

        item = copy.deepcopy(child)
        item.tail = None

        nested_lines: list[HtmlElement] = []
        for nested in outermost_descendants(item, "ol"):
            nested_lines.extend(flatten_list(nested, depth + 1, indent_em))
            replace_with(nested, [])

        line = make_element("div")
        line.append(make_element("span", f"{counter}. "))
        paragraph = _sole_paragraph(item)
        move_content(item if paragraph is None else paragraph, line)
        if depth > 0:
            line.set("style", f"margin-left: {depth * indent_em:g}em")

        lines.append(line)
        lines.extend(nested_lines)
        counter += 1

    return lines


def flatten_ordered_lists(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Replace every top-level ``<ol>`` under *root* with its flattened lines.

    A list without any ``<li>`` is left alone.

    Returns:
        True if any list was flattened.
    """
    indent_em = options.list_indent_em if options is not None else _DEFAULT_INDENT_EM
    flattened = 0
    for ol in outermost_descendants(root, "ol"):
        lines = flatten_list(ol, 0, indent_em)
        if not lines:
            continue
        replace_with(ol, lines)
        flattened += 1

    if flattened:
        logger.debug("Flattened %d ordered list(s)", flattened)
    return flattened > 0
