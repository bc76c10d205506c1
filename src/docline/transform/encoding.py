"""Reversible text encoding for metadata carried inside class tokens.

Class attributes are space-delimited, and the host splits some token values
on ``+`` and ``/``.  Metadata is therefore serialised to compact JSON and
base64-encoded with ``+`` -> ``-`` and ``/`` -> ``_`` (the URL-safe
alphabet), which contains neither spaces nor either unsafe symbol.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any


class TokenDecodeError(ValueError):
    """A class token does not hold valid encoded metadata."""


def encode_token(text: str) -> str:
    """Encode *text* into a string safe to embed as one class token."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def decode_token(token: str) -> str:
    """Reverse ``encode_token``.

    Raises:
        TokenDecodeError: If *token* is not valid URL-safe base64 or does not
            decode to UTF-8 text.
    """
    # Some producers drop the trailing padding
    padded = token + "=" * (-len(token) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        msg = f"Invalid metadata token: {token[:40]!r}"
        raise TokenDecodeError(msg) from exc


def encode_record(record: dict[str, Any]) -> str:
    """JSON-serialise a flat record and encode it.

    Raises:
        TypeError: If the record holds values JSON cannot serialise.
    """
    return encode_token(json.dumps(record, separators=(",", ":"), ensure_ascii=False))


def decode_record(token: str) -> dict[str, Any]:
    """Decode a token produced by ``encode_record``."""
    text = decode_token(token)
    try:
        record = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Metadata token is not JSON: {text[:40]!r}"
        raise TokenDecodeError(msg) from exc
    if not isinstance(record, dict):
        msg = f"Metadata token does not hold an object: {text[:40]!r}"
        raise TokenDecodeError(msg)
    return record


@dataclass(frozen=True)
class TableMeta:
    """Line-level metadata attached to every flattened table row.

    The wire names (``tblId``, ``row``, ``cols``) are what the host's table
    renderer reads back.
    """

    table_id: str
    row: int
    column_count: int

    def to_record(self) -> dict[str, Any]:
        return {"tblId": self.table_id, "row": self.row, "cols": self.column_count}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> TableMeta:
        try:
            return cls(
                table_id=str(record["tblId"]),
                row=int(record["row"]),
                column_count=int(record["cols"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Incomplete table metadata: {record!r}"
            raise TokenDecodeError(msg) from exc


def encode_table_meta(meta: TableMeta) -> str:
    return encode_record(meta.to_record())


def decode_table_meta(token: str) -> TableMeta:
    return TableMeta.from_record(decode_record(token))
