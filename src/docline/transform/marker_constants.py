"""Reserved characters and class-token prefixes shared with the host editor.

The host's attribute-to-class mapping parses these prefixes back into line
and character attributes, so every string here is bit-exact.

Used by every stage in docline/transform/ and by docline/attributes.py.
"""

from __future__ import annotations

import re

# Separates cell text inside one flattened table line.
DELIMITER = "\u241f"

# Non-collapsing boundary marker flanking image and hyperlink placeholders.
ZWSP = "\u200b"

NBSP = "\u00a0"

# Rendered content of a blank (empty or shadow) table cell.
BLANK_CELL_HTML = "<span>&nbsp;</span>"

# Image placeholder tokens
IMAGE_BASE_CLASSES = ("inline-image", "character", "image-placeholder")
IMAGE_PREFIX = "image:"
IMAGE_WIDTH_PREFIX = "image-width:"
IMAGE_HEIGHT_PREFIX = "image-height:"
IMAGE_ASPECT_PREFIX = "imageCssAspectRatio:"
IMAGE_ID_PREFIX = "image-id-"
IMAGE_ID_ATTR = "data-image-id"

# Hyperlink placeholder tokens
HYPERLINK_CLASS = "hyperlink"
HYPERLINK_PREFIX = "hyperlink-"

# Quantised style tokens
COLOR_PREFIX = "color:"
FONT_SIZE_PREFIX = "font-size:"

# Table line tokens
TABLE_META_PREFIX = "tbljson-"
TABLE_CELL_PREFIX = "tblCell-"

# Soft-break continuation line inside a numbered list
LIST_BREAK_CLASS = "listbreak"

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
ALIGN_WRAPPER_TAGS = frozenset(("center", "left", "right", "justify"))

# Links that already carry a scheme (or are document-relative) keep their href.
SCHEME_PATTERN = re.compile(r"^(https?://|mailto:|ftp:|file:|#|/)", re.IGNORECASE)
