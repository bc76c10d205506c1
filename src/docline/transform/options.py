"""Per-run options and identifier minting for the transform pipeline."""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from typing import Literal

from docline.transform.resolvers import ImageResolver, PassThroughImageResolver

type Environment = Literal["import", "paste"]

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class TransformOptions:
    """Options for one transformation run.

    A run is single-writer: one options object (and its identifier state)
    belongs to exactly one document or paste being transformed.

    Attributes:
        env: ``"import"`` for converted documents, ``"paste"`` for clipboard
            fragments.  Pastes skip the leading break before headings.
        image_resolver: Strategy for turning ``<img src>`` into the recorded
            source.
        mark_cells: Wrap each table cell in its own ``tblCell-N`` span.  When
            False, a table line is a single element holding the joined text.
        list_indent_em: Left indent per nesting level of ordered lists.
        rng: Source of randomness for identifiers; seed it for reproducible
            output.
    """

    env: Environment = "import"
    image_resolver: ImageResolver = field(default_factory=PassThroughImageResolver)
    mark_cells: bool = True
    list_indent_em: float = 1.5
    rng: random.Random = field(default_factory=random.Random)
    _table_base: str | None = field(default=None, init=False, repr=False)
    _table_count: int = field(default=0, init=False, repr=False)

    def random_token(self, length: int = 6) -> str:
        return "".join(self.rng.choices(_ID_ALPHABET, k=length))

    def new_image_id(self) -> str:
        """Mint an image identifier (12 chars; consumers reject <= 10)."""
        return self.random_token(12)

    def new_table_id(self) -> str:
        """Mint the next table identifier for this run.

        Identifiers share one random base per run and differ by a running
        index, so no two tables flattened or re-keyed in the same run collide.
        """
        if self._table_base is None:
            self._table_base = self.random_token()
        table_id = f"{self._table_base}-{self._table_count}"
        self._table_count += 1
        return table_id
