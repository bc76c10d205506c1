"""Run the flattening stages over one document or paste fragment.

Stage order matters where stages touch the same nodes:

1. headings        - before tables, which bold any heading left in a cell
2. alignment       - before images/tables disturb block boundaries
3. ordered lists
4. images          - before tables, so cells hold finished placeholders
5. hyperlinks      - likewise
6. styles          - likewise
7. table-id refresh, then tables
8. vertical-align

Each stage returns whether it changed anything; the run's "modified" flag
is their OR.
"""

# Pattern: Functional Core (each stage is a pure rewrite of the tree it is given)

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docline.transform.alignment import wrap_alignment
from docline.transform.dom import body_of, inner_html, parse_document, serialize
from docline.transform.headings import break_around_headings
from docline.transform.hyperlinks import replace_hyperlinks
from docline.transform.images import replace_images
from docline.transform.options import TransformOptions
from docline.transform.ordered_lists import flatten_ordered_lists
from docline.transform.styles import quantize_styles
from docline.transform.tables import flatten_tables, refresh_table_ids
from docline.transform.vertical_align import normalize_vertical_align

if TYPE_CHECKING:
    from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

type Stage = Callable[[HtmlElement, TransformOptions], bool]

STAGES: tuple[tuple[str, Stage], ...] = (
    ("headings", break_around_headings),
    ("alignment", wrap_alignment),
    ("ordered_lists", flatten_ordered_lists),
    ("images", replace_images),
    ("hyperlinks", replace_hyperlinks),
    ("styles", quantize_styles),
    ("table_ids", refresh_table_ids),
    ("tables", flatten_tables),
    ("vertical_align", normalize_vertical_align),
)


class TransformError(Exception):
    """A stage failed unexpectedly; the caller must discard the tree."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        super().__init__(f"Transform stage '{stage}' failed: {cause}")


@dataclass(frozen=True)
class TransformResult:
    """Serialised output of ``transform_html``."""

    html: str
    modified: bool


def customize_document(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Apply every stage to *root* in place.

    Precondition: nothing else mutates *root* during the run.

    Returns:
        True if any stage changed the tree.

    Raises:
        TransformError: If a stage raises.  *root* is then partially
            rewritten and must not be persisted.
    """
    options = options or TransformOptions()
    modified = False
    for name, stage in STAGES:
        try:
            changed = stage(root, options)
        except Exception as exc:
            logger.exception("Stage %s failed", name)
            raise TransformError(name, exc) from exc
        modified = changed or modified
    return modified


def transform_html(
    markup: str, options: TransformOptions | None = None, *, fragment: bool = False
) -> TransformResult:
    """Parse *markup*, transform it, and serialise it back.

    Args:
        markup: A full HTML document, or a fragment when *fragment* is True.
        options: Run options; a fresh default set when omitted.
        fragment: Return only the ``<body>`` content (clipboard pastes).

    Returns:
        The transformed HTML and whether anything changed.  When nothing
        changed, ``html`` is *markup* unchanged.

    Raises:
        TransformError: If a stage fails; *markup* is untouched.
    """
    root = parse_document(markup)
    modified = customize_document(root, options)
    if not modified:
        return TransformResult(html=markup, modified=False)
    output = inner_html(body_of(root)) if fragment else serialize(root)
    return TransformResult(html=output, modified=True)
