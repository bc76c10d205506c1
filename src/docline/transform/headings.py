"""Give every heading its own editor line."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docline.transform.alignment import alignment_of, strip_alignment, will_wrap
from docline.transform.dom import (
    insert_after,
    insert_before,
    iter_elements,
    make_element,
)
from docline.transform.marker_constants import HEADING_TAGS

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from docline.transform.options import TransformOptions

logger = logging.getLogger(__name__)


def break_around_headings(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Insert ``<br>`` before and after every ``h1``-``h6``.

    A heading the alignment stage is going to wrap gets only the leading
    break: the wrapper brings its own trailing one.  An aligned heading that
    sits inside another aligned block is never wrapped; it loses its own
    alignment and gets both breaks.  Pasted fragments skip the leading
    break so the paste does not open with a blank line.

    Returns:
        True if the document contained any heading.
    """
    paste = options is not None and options.env == "paste"
    count = 0
    for heading in iter_elements(root, *HEADING_TAGS):
        if heading.getparent() is None:
            continue
        if not paste:
            insert_before(heading, make_element("br"))
        if not will_wrap(heading):
            if alignment_of(heading) is not None:
                strip_alignment(heading)
            insert_after(heading, make_element("br"))
        count += 1

    if count:
        logger.debug("Isolated %d heading(s) with line breaks", count)
    return count > 0
