"""Turn ``vertical-align: super|sub`` styling into ``<sup>``/``<sub>``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docline.transform.dom import (
    get_classes,
    get_style,
    iter_elements,
    make_element,
    move_content,
    replace_with,
    set_classes,
)

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)

_TARGET_TAG = {"super": "sup", "sub": "sub"}


def normalize_vertical_align(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Replace vertically aligned elements with semantic sup/sub elements.

    The replacement keeps the element's content and its classes (minus any
    ``sup``/``sub`` class); the inline style is dropped.

    Returns:
        True if any element was replaced.
    """
    replaced = 0
    for el in iter_elements(root):
        if "vertical-align" not in (el.get("style") or "").lower():
            continue
        tag = _TARGET_TAG.get(get_style(el, "vertical-align").lower())
        if tag is None or el.getparent() is None:
            continue

        semantic = make_element(tag)
        set_classes(semantic, [c for c in get_classes(el) if c not in ("sup", "sub")])
        move_content(el, semantic)
        replace_with(el, [semantic])
        replaced += 1

    if replaced:
        logger.debug("Converted %d vertical-align element(s)", replaced)
    return replaced > 0
