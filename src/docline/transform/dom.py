"""lxml helpers for in-place DOM surgery.

lxml keeps the text that follows an element in that element's ``tail``,
so removing or moving an element also moves the text after it.  Every
rewrite in the transform stages goes through ``replace_with`` (or the
insert/wrap helpers below), which keep tail text where it belongs.
"""

from __future__ import annotations

import html as html_module
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from lxml import html as lxml_html
from lxml.html import HtmlElement

from docline.transform.marker_constants import NBSP

if TYPE_CHECKING:
    from collections.abc import Iterator

# A rewrite item is either literal text or an element.
type Item = str | HtmlElement

_STYLE_DECL = re.compile(r"\s*([-\w]+)\s*:\s*([^;]*);?")
_EMPTY_DOCUMENT = "<html><body></body></html>"


# ---------------------------------------------------------------------------
# Parsing and serialisation
# ---------------------------------------------------------------------------
def parse_document(markup: str) -> HtmlElement:
    """Parse a full HTML document (or fragment) into an ``<html>`` root."""
    if not markup or not markup.strip():
        markup = _EMPTY_DOCUMENT
    return lxml_html.document_fromstring(markup)


def parse_fragment(markup: str) -> HtmlElement:
    """Parse *markup* into a detached ``<div>`` holding its nodes."""
    return lxml_html.fragment_fromstring(markup or "", create_parent="div")


def body_of(root: HtmlElement) -> HtmlElement:
    """Return the ``<body>`` of *root*, or *root* itself for fragments."""
    body = root.find("body")
    return body if body is not None else root


def serialize(root: HtmlElement) -> str:
    """Serialise a document root (or any element) back to HTML."""
    return lxml_html.tostring(root, encoding="unicode")


def outer_html(el: HtmlElement) -> str:
    """HTML of *el* itself, excluding the text that follows it."""
    return lxml_html.tostring(el, encoding="unicode", with_tail=False)


def inner_html(el: HtmlElement) -> str:
    """HTML of *el*'s content, excluding its own tag."""
    parts = [html_module.escape(el.text, quote=False)] if el.text else []
    parts.extend(
        lxml_html.tostring(child, encoding="unicode", with_tail=True) for child in el
    )
    return "".join(parts)


def set_inner_html(el: HtmlElement, markup: str) -> None:
    """Replace *el*'s content with the nodes parsed from *markup*."""
    holder = parse_fragment(markup)
    for child in list(el):
        el.remove(child)
    el.text = holder.text
    for child in list(holder):
        el.append(child)


def make_element(tag: str, text: str | None = None, **attrs: str) -> HtmlElement:
    """Create a detached element with optional text and attributes."""
    el = lxml_html.Element(tag)
    for name, value in attrs.items():
        el.set(name.replace("_", "-"), value)
    if text is not None:
        el.text = text
    return el


def is_element(node: object) -> bool:
    """True for real elements, False for comments and processing instructions."""
    return isinstance(node, HtmlElement) and isinstance(node.tag, str)


# ---------------------------------------------------------------------------
# Structural rewrites
# ---------------------------------------------------------------------------
def _append_text(parent: HtmlElement, anchor: HtmlElement | None, text: str) -> None:
    if anchor is None:
        parent.text = (parent.text or "") + text
    else:
        anchor.tail = (anchor.tail or "") + text


def replace_with(node: HtmlElement, items: Sequence[Item]) -> None:
    """Replace *node* with *items* in place, keeping the text after *node*.

    Elements in *items* are moved (with their own tail text) from wherever
    they currently live.

    Raises:
        ValueError: If *node* has no parent.
    """
    parent = node.getparent()
    if parent is None:
        msg = f"Cannot replace detached <{node.tag}>"
        raise ValueError(msg)

    tail = node.tail
    anchor = node.getprevious()
    index = parent.index(node)
    node.tail = None
    parent.remove(node)

    for item in [*items, tail]:
        if item is None or item == "":
            continue
        if isinstance(item, str):
            _append_text(parent, anchor, item)
        else:
            parent.insert(index, item)
            index += 1
            anchor = item


def content_items(el: HtmlElement) -> list[Item]:
    """Return *el*'s content as rewrite items (leading text, then children)."""
    items: list[Item] = [el.text] if el.text else []
    items.extend(el)
    return items


def unwrap(el: HtmlElement) -> None:
    """Replace *el* with its own content."""
    replace_with(el, content_items(el))


def move_content(source: HtmlElement, target: HtmlElement) -> None:
    """Append all of *source*'s content to the end of *target*."""
    if source.text:
        last = target[-1] if len(target) else None
        _append_text(target, last, source.text)
        source.text = None
    for child in list(source):
        target.append(child)


def insert_before(node: HtmlElement, new: HtmlElement) -> None:
    parent = node.getparent()
    new.tail = None
    parent.insert(parent.index(node), new)


def insert_after(node: HtmlElement, new: HtmlElement) -> None:
    parent = node.getparent()
    new.tail = node.tail
    node.tail = None
    parent.insert(parent.index(node) + 1, new)


def wrap(node: HtmlElement, wrapper: HtmlElement) -> None:
    """Make *wrapper* the new parent of *node*, in *node*'s position."""
    parent = node.getparent()
    wrapper.tail = node.tail
    node.tail = None
    parent.insert(parent.index(node), wrapper)
    wrapper.append(node)


def has_ancestor(el: HtmlElement, tags: Iterable[str]) -> bool:
    wanted = frozenset(tags)
    return any(anc.tag in wanted for anc in el.iterancestors())


def iter_elements(root: HtmlElement, *tags: str) -> Iterator[HtmlElement]:
    """Snapshot of matching descendants, safe to mutate while iterating."""
    return iter([el for el in root.iter(*tags) if is_element(el)])


# ---------------------------------------------------------------------------
# Inline style and class tokens
# ---------------------------------------------------------------------------
def parse_style(style: str | None) -> dict[str, str]:
    """Parse an inline ``style`` attribute into an ordered property map."""
    if not style:
        return {}
    return {
        name.lower(): value.strip()
        for name, value in _STYLE_DECL.findall(style)
        if value.strip()
    }


def get_style(el: HtmlElement, prop: str) -> str:
    return parse_style(el.get("style")).get(prop, "")


def set_style(el: HtmlElement, props: dict[str, str]) -> None:
    if props:
        el.set("style", "; ".join(f"{k}: {v}" for k, v in props.items()))
    elif "style" in el.attrib:
        del el.attrib["style"]


def remove_style_properties(el: HtmlElement, *props: str) -> bool:
    """Drop *props* from *el*'s inline style. Returns True if any were present."""
    current = parse_style(el.get("style"))
    kept = {k: v for k, v in current.items() if k not in props}
    if len(kept) == len(current):
        return False
    set_style(el, kept)
    return True


def get_classes(el: HtmlElement) -> list[str]:
    return (el.get("class") or "").split()


def set_classes(el: HtmlElement, classes: Iterable[str]) -> None:
    value = " ".join(classes)
    if value:
        el.set("class", value)
    elif "class" in el.attrib:
        del el.attrib["class"]


def find_class_value(classes: Iterable[str], prefix: str) -> str | None:
    """Return the value of the first class token starting with *prefix*."""
    for cls in classes:
        if cls.startswith(prefix):
            return cls[len(prefix) :]
    return None


def visible_text(el: HtmlElement) -> str:
    """Text content with non-breaking spaces removed and ends trimmed."""
    return el.text_content().replace(NBSP, "").strip()
