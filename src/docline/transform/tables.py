"""Flatten HTML tables into delimiter-joined editor lines.

The host's table plugin stores a table as consecutive lines, one per row.
A row's cell contents are joined by ``DELIMITER`` and every line carries a
``tbljson-<token>`` class whose token encodes ``{tblId, row, cols}``.  Each
cell is also wrapped in a ``tblCell-<column>`` span so cell boundaries can
be recovered after the text is edited.

Merged cells are resolved into a full row-major grid first:

* ``colspan`` fills the extra columns of the same row with blank cells;
* ``rowspan`` leaves a carry count on its columns, and each following row
  emits a blank cell there (without consuming a source cell) until the
  count drains.

Blank cells render as a non-breaking space so the host never collapses an
empty column to zero width.
"""

from __future__ import annotations

import html as html_module
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docline.transform.dom import (
    get_classes,
    inner_html,
    is_element,
    iter_elements,
    make_element,
    outer_html,
    parse_fragment,
    replace_with,
    set_classes,
    set_inner_html,
    visible_text,
)
from docline.transform.encoding import (
    TableMeta,
    TokenDecodeError,
    decode_table_meta,
    encode_table_meta,
)
from docline.transform.marker_constants import (
    BLANK_CELL_HTML,
    DELIMITER,
    HEADING_TAGS,
    TABLE_CELL_PREFIX,
    TABLE_META_PREFIX,
)
from docline.transform.options import TransformOptions
from docline.transform.ordered_lists import outermost_descendants

if TYPE_CHECKING:
    from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_NEWLINES = re.compile(r"\r\n|\r|\n")
_SOLE_BR = re.compile(r"^<br\s*/?>\s*$", re.IGNORECASE)
_TRAILING_BRS = re.compile(r"(<br\s*/?>\s*)+$", re.IGNORECASE)
_ANY_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)

# Paragraph-like wrappers whose content is inlined into the cell.
_INLINED_BLOCKS = frozenset(("p", "div"))


@dataclass(frozen=True)
class GridCell:
    """One logical cell of the flattened grid."""

    html: str
    blank: bool = False


BLANK_CELL = GridCell(BLANK_CELL_HTML, blank=True)


@dataclass
class TableGrid:
    """A table resolved into ``len(rows)`` x ``column_count`` cells.

    ``pending_rowspan`` is the row-span carry state after the last row; it
    is all zeros for a well-formed table.
    """

    rows: list[list[GridCell]]
    column_count: int
    pending_rowspan: list[int]


def span_value(cell: HtmlElement, name: str) -> int:
    """Read ``colspan``/``rowspan``; missing, invalid or < 1 means 1."""
    match = _LEADING_INT.match(cell.get(name) or "")
    if not match:
        return 1
    return max(int(match.group(1)), 1)


def table_rows(table: HtmlElement) -> list[HtmlElement]:
    """``<tr>`` elements of *table* in document order, header rows included.

    Rows of tables nested inside a cell belong to the nested table.
    """
    rows = []
    for tr in table.iter("tr"):
        owner = next(tr.iterancestors("table"), None)
        if owner is table:
            rows.append(tr)
    return rows


def row_cells(tr: HtmlElement) -> list[HtmlElement]:
    return [cell for cell in tr if is_element(cell) and cell.tag in ("td", "th")]


def logical_column_count(rows: list[list[HtmlElement]]) -> int:
    """Widest row, counting each cell as its ``colspan``."""
    return max(
        (sum(span_value(cell, "colspan") for cell in cells) for cells in rows),
        default=0,
    )


def _single_line(markup: str) -> str:
    return _NEWLINES.sub(" ", markup).strip()


def _bold_headings(holder: HtmlElement) -> None:
    """A heading inside a cell becomes a bold span, not a document heading."""
    for heading in iter_elements(holder, *HEADING_TAGS):
        classes = get_classes(heading)
        if "bold" not in classes:
            classes.append("bold")
        span = make_element("span")
        set_classes(span, classes)
        set_inner_html(span, _single_line(inner_html(heading)))
        replace_with(heading, [span])


def _flatten_nested_tables(holder: HtmlElement) -> None:
    for nested in outermost_descendants(holder, "table"):
        texts = [
            " ".join(cell.text_content().split())
            for row in table_rows(nested)
            for cell in row_cells(row)
        ]
        replace_with(nested, [" ".join(t for t in texts if t)])


def normalise_cell_html(cell: HtmlElement) -> str:
    """Reduce a cell's content to single-line inline HTML.

    Paragraph wrappers are inlined (joined by a space), headings become bold
    spans, newlines and embedded ``<br>`` become spaces, a trailing run of
    ``<br>`` is dropped, and the field delimiter is replaced by a space.
    Inline content between paragraphs is kept as written, so an image
    placeholder stays flush against its zero-width markers.
    Visibly empty content becomes ``BLANK_CELL_HTML``.
    """
    holder = parse_fragment(_single_line(inner_html(cell)))
    _flatten_nested_tables(holder)
    _bold_headings(holder)

    parts: list[str] = []
    run: list[str] = []

    def flush() -> None:
        text = "".join(run).strip()
        if text:
            parts.append(text)
        run.clear()

    def add_text(text: str | None) -> None:
        if text:
            run.append(html_module.escape(_NEWLINES.sub(" ", text), quote=False))

    add_text(holder.text)
    for child in holder:
        if is_element(child):
            if child.tag in _INLINED_BLOCKS:
                flush()
                inner = _single_line(inner_html(child))
                if inner:
                    parts.append(inner)
            else:
                run.append(_single_line(outer_html(child)))
        add_text(child.tail)
    flush()

    markup = " ".join(parts).strip().replace(DELIMITER, " ")
    if _SOLE_BR.match(markup):
        markup = ""
    if markup:
        markup = _ANY_BR.sub(" ", _TRAILING_BRS.sub("", markup)).strip()

    if not markup or not visible_text(parse_fragment(markup)):
        return BLANK_CELL_HTML
    return markup


def build_table_grid(table: HtmlElement) -> TableGrid | None:
    """Resolve *table* into a full grid, or None if it has no rows/columns."""
    rows = [row_cells(tr) for tr in table_rows(table)]
    if not rows:
        return None
    column_count = logical_column_count(rows)
    if column_count == 0:
        return None

    pending = [0] * column_count
    grid: list[list[GridCell]] = []

    for cells in rows:
        source = iter(cells)
        out: list[GridCell] = []
        col = 0
        while col < column_count:
            if pending[col] > 0:
                pending[col] -= 1
                out.append(BLANK_CELL)
                col += 1
                continue

            cell = next(source, None)
            if cell is None:
                out.append(BLANK_CELL)
                col += 1
                continue

            colspan = span_value(cell, "colspan")
            rowspan = span_value(cell, "rowspan")
            markup = normalise_cell_html(cell)
            out.append(GridCell(markup, blank=markup == BLANK_CELL_HTML))
            if rowspan > 1:
                pending[col] = rowspan - 1

            for extra in range(col + 1, min(col + colspan, column_count)):
                # A colspan overlapping an active rowspan consumes that slot.
                if pending[extra] > 0:
                    pending[extra] -= 1
                out.append(BLANK_CELL)
                if rowspan > 1:
                    pending[extra] = max(pending[extra], rowspan - 1)
            col += colspan

        grid.append(out)

    return TableGrid(rows=grid, column_count=column_count, pending_rowspan=pending)


def build_table_line(
    cells: list[GridCell], token: str, *, mark_cells: bool = True
) -> HtmlElement:
    """Build the ``<div>`` for one table row.

    With *mark_cells*, each cell is a ``tbljson-… tblCell-N`` span, spans are
    separated by ``DELIMITER`` text, and a final empty ``tbljson-…`` span
    holds the line-level attribute.  Otherwise the div itself carries the
    ``tbljson-…`` class and contains the joined cell HTML.
    """
    line = make_element("div")
    meta_class = f"{TABLE_META_PREFIX}{token}"

    if not mark_cells:
        line.set("class", meta_class)
        set_inner_html(line, DELIMITER.join(cell.html for cell in cells))
        return line

    for index, cell in enumerate(cells):
        span = make_element("span")
        span.set("class", f"{meta_class} {TABLE_CELL_PREFIX}{index}")
        set_inner_html(span, cell.html)
        if index < len(cells) - 1:
            span.tail = DELIMITER
        line.append(span)

    final = make_element("span")
    final.set("class", meta_class)
    line.append(final)
    return line


def flatten_tables(root: HtmlElement, options: TransformOptions | None = None) -> bool:
    """Replace every outermost ``<table>`` with one line per row.

    Tables without rows or columns are left in place.  A table whose
    metadata cannot be encoded is also left in place, with a warning.

    Returns:
        True if at least one table produced lines.
    """
    options = options or TransformOptions()
    processed = 0

    for index, table in enumerate(outermost_descendants(root, "table"), start=1):
        grid = build_table_grid(table)
        if grid is None:
            logger.debug("Table %d has no rows or columns, skipping", index)
            continue

        table_id = options.new_table_id()
        try:
            lines = [
                build_table_line(
                    cells,
                    encode_table_meta(TableMeta(table_id, row, grid.column_count)),
                    mark_cells=options.mark_cells,
                )
                for row, cells in enumerate(grid.rows)
            ]
        except (TypeError, ValueError):
            logger.warning("Table %d metadata could not be encoded, left as-is", index)
            continue

        if any(grid.pending_rowspan):
            logger.debug(
                "Table %d ends with unresolved rowspans %s", index, grid.pending_rowspan
            )
        replace_with(table, lines)
        processed += 1
        logger.debug(
            "Table %d -> %s: %d row(s) x %d column(s)",
            index,
            table_id,
            len(lines),
            grid.column_count,
        )

    if processed:
        logger.info("Flattened %d table(s)", processed)
    return processed > 0


def refresh_table_ids(
    root: HtmlElement, options: TransformOptions | None = None
) -> bool:
    """Re-key already-flattened table lines with identifiers from this run.

    Pasting previously rendered table output must not alias a table that
    already exists in the destination document.  Lines that shared an old
    identifier keep sharing the new one.

    Returns:
        True if any token was rewritten.
    """
    options = options or TransformOptions()
    renamed: dict[str, str] = {}
    rewritten = 0

    for el in iter_elements(root):
        classes = get_classes(el)
        if not any(cls.startswith(TABLE_META_PREFIX) for cls in classes):
            continue
        updated = []
        for cls in classes:
            if not cls.startswith(TABLE_META_PREFIX):
                updated.append(cls)
                continue
            try:
                meta = decode_table_meta(cls[len(TABLE_META_PREFIX) :])
            except TokenDecodeError:
                logger.debug("Ignoring undecodable table token %s", cls[:40])
                updated.append(cls)
                continue
            if meta.table_id not in renamed:
                renamed[meta.table_id] = options.new_table_id()
            fresh = TableMeta(renamed[meta.table_id], meta.row, meta.column_count)
            updated.append(f"{TABLE_META_PREFIX}{encode_table_meta(fresh)}")
            rewritten += 1
        set_classes(el, updated)

    if renamed:
        logger.debug("Re-keyed %d pasted table(s)", len(renamed))
    return rewritten > 0
