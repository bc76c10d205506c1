"""Running list numbering and soft breaks on the host's line model.

The host keeps one "next ordinal" counter while collecting list lines
instead of deriving numbers from the tree.  Without intervention a second
list continues where the first stopped (11, 12, 13 ...).  The state machine
here clears the counter whenever a new top-level ``<ol>`` begins and advances
it after each counted item, skipping soft-break continuation lines.

States::

    NoActiveList --enter top-level ol--> InList(counter=None -> 1)
    InList(n)    --counted li done-----> InList(n + 1)
    InList(n)    --listbreak line------> InList(n)
    InList(n)    --exit outermost list-> NoActiveList
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from docline.transform.marker_constants import LIST_BREAK_CLASS

_LIST_LEVEL = re.compile(r"^number(\d*)$")


@dataclass
class EditorLine:
    """One host line: flat text plus line attributes (``list``, ``listbreak``...)."""

    text: str
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def list_type(self) -> str | None:
        return self.attributes.get("list")

    @property
    def is_numbered(self) -> bool:
        return "number" in (self.list_type or "")

    @property
    def is_soft_break(self) -> bool:
        return self.attributes.get(LIST_BREAK_CLASS) == "true"

    @property
    def list_level(self) -> int:
        """Nesting level of a numbered line (``number2`` -> 2), 0 otherwise."""
        match = _LIST_LEVEL.match(self.list_type or "")
        if not match:
            return 0
        return int(match.group(1) or 1)


class ListNumberingState:
    """The host's running ordinal for one list level."""

    def __init__(self) -> None:
        self.start: int | None = None
        self.in_list = False

    @property
    def ordinal(self) -> int:
        """Number the next counted item receives."""
        return self.start or 1

    def enter_list(self, *, nested: bool) -> None:
        """Called before the collector enters an ``<ol>``.

        Only a list that is not nested in another list restarts numbering.
        """
        if not nested:
            self.start = None
        self.in_list = True

    def complete_item(self, list_type: str | None, classes: Iterable[str] = ()) -> bool:
        """Called after an ``<li>`` has been collected. True if it was counted."""
        if "number" not in (list_type or ""):
            return False
        if LIST_BREAK_CLASS in classes:
            return False
        self.start = (self.start or 1) + 1
        return True

    def exit_list(self) -> None:
        self.start = None
        self.in_list = False


def number_lines(lines: Iterable[EditorLine]) -> list[int | None]:
    """Ordinal shown on each line (None for unnumbered and soft-break lines).

    A run of numbered lines is one list; any other line ends it, so the
    next numbered line starts again at 1.  Each deeper level numbers
    independently and restarts whenever it is re-entered from above.
    """
    states: dict[int, ListNumberingState] = {}
    result: list[int | None] = []

    for line in lines:
        if line.is_soft_break:
            result.append(None)
            continue

        level = line.list_level
        for deeper in [lvl for lvl in states if lvl > level]:
            states.pop(deeper).exit_list()
        if level == 0:
            result.append(None)
            continue

        state = states.get(level)
        if state is None:
            state = states[level] = ListNumberingState()
            state.enter_list(nested=any(lvl < level for lvl in states))

        result.append(state.ordinal)
        state.complete_item(line.list_type)

    return result


def insert_soft_break(lines: list[EditorLine], line_index: int, column: int) -> bool:
    """Split a numbered line at *column* without starting a new list item.

    The text after *column* moves to a new line directly below, which keeps
    the list attributes and is tagged ``listbreak: true`` so it shows no
    number and does not advance the counter.

    Returns:
        False (and leaves *lines* alone) when the line is not numbered.
    """
    line = lines[line_index]
    if not line.is_numbered:
        return False
    column = max(0, min(column, len(line.text)))
    head, tail = line.text[:column], line.text[column:]
    line.text = head
    attributes = {**line.attributes, LIST_BREAK_CLASS: "true"}
    lines.insert(line_index + 1, EditorLine(tail, attributes))
    return True
