"""Two-way mapping between host attributes and placeholder class tokens.

The transform stages emit class tokens; the host stores attributes
(``name -> value`` pairs on a line or a character range).  This table is
the single place both directions are defined, so a token the stages write
is always one the host can read back.

==================  ==============================  =======================
attribute           class token(s)                  value
==================  ==============================  =======================
image               ``image:<v>``                   percent-encoded source
image-width         ``image-width:<v>``             ``100px`` etc.
image-height        ``image-height:<v>``
imageCssAspectRatio ``imageCssAspectRatio:<v>``     ``2.0000``
image-id            ``image-id-<v>``                opaque
hyperlink           ``hyperlink hyperlink-<enc>``   URL (decoded)
color               ``color:<v>``                   palette name
font-size           ``font-size:<v>``               palette size
tbljson             ``tbljson-<token>``             JSON text
td                  ``tblCell-<v>``                 column index
listbreak           ``listbreak``                   ``"true"``
==================  ==============================  =======================
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from urllib.parse import unquote

from docline.transform.encoding import TokenDecodeError, decode_token, encode_token
from docline.transform.images import encode_uri_component
from docline.transform.marker_constants import (
    COLOR_PREFIX,
    FONT_SIZE_PREFIX,
    HYPERLINK_CLASS,
    HYPERLINK_PREFIX,
    IMAGE_ASPECT_PREFIX,
    IMAGE_HEIGHT_PREFIX,
    IMAGE_ID_PREFIX,
    IMAGE_PREFIX,
    IMAGE_WIDTH_PREFIX,
    LIST_BREAK_CLASS,
    TABLE_CELL_PREFIX,
    TABLE_META_PREFIX,
)

logger = logging.getLogger(__name__)

# Attributes whose class token is just "<prefix><value>".
PREFIXED_ATTRIBUTES: dict[str, str] = {
    "image": IMAGE_PREFIX,
    "image-width": IMAGE_WIDTH_PREFIX,
    "image-height": IMAGE_HEIGHT_PREFIX,
    "imageCssAspectRatio": IMAGE_ASPECT_PREFIX,
    "image-id": IMAGE_ID_PREFIX,
    "color": COLOR_PREFIX,
    "font-size": FONT_SIZE_PREFIX,
    "td": TABLE_CELL_PREFIX,
}

# Longest prefix first, so "image-width:" is never read as "image-...".
_PREFIX_LOOKUP = sorted(
    ((prefix, name) for name, prefix in PREFIXED_ATTRIBUTES.items()),
    key=lambda pair: len(pair[0]),
    reverse=True,
)


def attribute_to_classes(name: str, value: str) -> list[str]:
    """Class tokens for one attribute; empty for unknown or empty attributes."""
    if not value:
        return []
    if name in PREFIXED_ATTRIBUTES:
        return [f"{PREFIXED_ATTRIBUTES[name]}{value}"]
    if name == "hyperlink":
        return [HYPERLINK_CLASS, f"{HYPERLINK_PREFIX}{encode_uri_component(value)}"]
    if name == "tbljson":
        return [f"{TABLE_META_PREFIX}{encode_token(value)}"]
    if name == LIST_BREAK_CLASS:
        return [LIST_BREAK_CLASS] if value == "true" else []
    return []


def attributes_to_classes(attributes: Iterable[tuple[str, str]]) -> list[str]:
    """Class tokens for a set of attributes, without duplicates, in order."""
    classes: list[str] = []
    for name, value in attributes:
        for cls in attribute_to_classes(name, value):
            if cls not in classes:
                classes.append(cls)
    return classes


def class_to_attribute(cls: str) -> tuple[str, str] | None:
    """Attribute recorded by one class token, or None if it records none.

    Undecodable ``tbljson-`` tokens are ignored with a debug log rather than
    raising; they come from foreign content.
    """
    if cls == LIST_BREAK_CLASS:
        return (LIST_BREAK_CLASS, "true")
    if cls.startswith(TABLE_META_PREFIX):
        try:
            return ("tbljson", decode_token(cls[len(TABLE_META_PREFIX) :]))
        except TokenDecodeError:
            logger.debug("Ignoring undecodable table token %s", cls[:40])
            return None
    if cls.startswith(HYPERLINK_PREFIX):
        return ("hyperlink", unquote(cls[len(HYPERLINK_PREFIX) :]))
    for prefix, name in _PREFIX_LOOKUP:
        if cls.startswith(prefix) and len(cls) > len(prefix):
            return (name, cls[len(prefix) :])
    return None


def classes_to_attributes(classes: str | Iterable[str]) -> dict[str, str]:
    """Attributes recorded by a class attribute value or token list.

    The first token wins when two tokens record the same attribute.
    """
    if isinstance(classes, str):
        classes = classes.split()
    attributes: dict[str, str] = {}
    for cls in classes:
        pair = class_to_attribute(cls)
        if pair is not None and pair[0] not in attributes:
            attributes[pair[0]] = pair[1]
    return attributes
