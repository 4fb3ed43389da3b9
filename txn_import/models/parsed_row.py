from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Union

"""ParsedRow model: one candidate transaction under review.

A ParsedRow keeps the user's raw input (as extracted from the file) together
with the per-row review state (errors, suggested category, edited flag).
It is frozen; the import session swaps in a new instance when a row is
re-validated or edited, so ``row_number`` never changes.
"""

__all__ = [
    "RawRow",
    "RawValue",
    "ParsedRow",
    "COLUMN_FIELDS",
    "REQUIRED_COLUMNS",
    "OPTIONAL_COLUMNS",
    "EDITABLE_FIELDS",
    "EXTRA_FIELDS_KEY",
]

RawValue = Union[str, int, float]
# Header name -> raw cell value for one extracted row
RawRow = dict[str, Union[RawValue, tuple[str, ...]]]

# Spreadsheet header -> ParsedRow attribute
COLUMN_FIELDS: dict[str, str] = {
    "date": "date",
    "type": "type",
    "amount": "amount",
    "description": "description",
    "payee": "payee",
    "category": "category",
    "tags": "tags",
    "notes": "notes",
    "sharedGroup": "shared_group",
    "paidBy": "paid_by",
    "splitType": "split_type",
    "participants": "participants",
}

REQUIRED_COLUMNS: tuple[str, ...] = ("date", "type", "amount", "description")
OPTIONAL_COLUMNS: tuple[str, ...] = tuple(c for c in COLUMN_FIELDS if c not in REQUIRED_COLUMNS)

# Fields the edit loop may replace (input fields only, never review state)
EDITABLE_FIELDS: frozenset[str] = frozenset(COLUMN_FIELDS.values())

# RawRow key holding the surplus cells of a CSV line wider than its header
EXTRA_FIELDS_KEY = "__extra_fields"


def _cell_text(value: Any) -> str:
    """Render a raw cell as text (numbers keep their shortest form)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


@dataclass(frozen=True)
class ParsedRow:
    """One row of the uploaded file after extraction.

    ``date`` stays as supplied (string or spreadsheet serial) for display;
    the canonical date is re-derived when the row is materialised.
    ``is_valid`` is derived from ``errors`` so the two can never disagree.
    """
    row_number: int  # 1-based, header line excluded
    date: RawValue = ""
    type: str = ""
    amount: str = ""
    description: str = ""
    payee: str = ""
    category: str = ""
    tags: str = ""
    notes: str = ""
    # Shared-expense block: all four set together or none
    shared_group: str = ""
    paid_by: str = ""
    split_type: str = ""
    participants: str = ""
    extra_fields: tuple[str, ...] = ()  # 列数超過分 (カンマ未クォート)
    # Review state
    errors: tuple[str, ...] = ()
    suggested_category: str | None = None
    is_edited: bool = False
    excluded: bool = False  # 利用者が送信対象から外した行

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def is_shared(self) -> bool:
        return bool(self.shared_group)

    @classmethod
    def from_raw(cls, row_number: int, raw: Mapping[str, Any]) -> ParsedRow:
        """Lift an extracted RawRow into a ParsedRow (no validation yet).

        Unknown headers are ignored. Numeric dates are kept as numbers so the
        date normalizer can treat them as spreadsheet serials; every other
        field becomes text.
        """
        values: dict[str, Any] = {}
        for column, attr in COLUMN_FIELDS.items():
            if column not in raw or raw[column] is None:
                continue
            value = raw[column]
            if attr == "date" and isinstance(value, (int, float)) and not isinstance(value, bool):
                values[attr] = value
            elif attr == "date" and not isinstance(value, str):
                # datetime など: 表示用に文字列化 (正規化は dates 側で再評価)
                values[attr] = value
            else:
                values[attr] = _cell_text(value)
        extra = raw.get(EXTRA_FIELDS_KEY)
        if extra:
            values["extra_fields"] = tuple(str(v) for v in extra)
        return cls(row_number=row_number, **values)

    def input_values(self) -> dict[str, Any]:
        """Return the user-editable input fields keyed by attribute name."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name in EDITABLE_FIELDS}
