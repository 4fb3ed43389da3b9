from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models.catalog import Catalogs
from ..models.enums import FileKind
from ..models.parsed_row import ParsedRow
from ..models.payload import ImportRequest, TransactionPayload
from . import dates
from .amounts import parse_decimal

"""Batch materializer: reviewed rows -> transaction payloads.

Only valid rows are materialised unless the caller asks for "import anyway",
in which case invalid rows go out as-is and are expected to fail on the
server. Rows the user excluded never go out.
"""

__all__ = [
    "split_tags",
    "resolve_category_id",
    "materialize_row",
    "materialize",
    "build_request",
]

logger = logging.getLogger(__name__)

TAG_SEPARATOR = ","


def _optional(value: str) -> str | None:
    text = (value or "").strip()
    return text or None


def split_tags(value: str) -> list[str] | None:
    tags = [t.strip() for t in (value or "").split(TAG_SEPARATOR)]
    tags = [t for t in tags if t]
    return tags or None


def resolve_category_id(row: ParsedRow, catalogs: Catalogs) -> str | None:
    """Category id for the row, preferring the matcher's suggestion.

    The suggestion only wins when a catalog entry carries exactly that name;
    otherwise the raw category text is tried; otherwise uncategorised.
    """
    for name in (row.suggested_category, row.category):
        if not name:
            continue
        entry = catalogs.find_category(name)
        if entry is not None:
            return entry.id
    return None


def materialize_row(row: ParsedRow, catalogs: Catalogs) -> TransactionPayload:
    """Convert one row. The date is re-derived, never copied from the raw cell."""
    normalized = dates.normalize(row.date)
    date_text = dates.format_iso(normalized) if normalized is not None else str(row.date)
    return TransactionPayload(
        row_number=row.row_number,
        date=date_text,
        type=(row.type or "").strip().upper(),
        amount=parse_decimal(row.amount),
        description=(row.description or "").strip(),
        category_id=resolve_category_id(row, catalogs),
        tags=split_tags(row.tags),
        notes=_optional(row.notes),
        payee=_optional(row.payee),
        shared_group=_optional(row.shared_group),
        paid_by=_optional(row.paid_by),
        split_type=_optional(row.split_type),
        participants=_optional(row.participants),
    )


def materialize(
    rows: Iterable[ParsedRow],
    catalogs: Catalogs,
    *,
    import_anyway: bool = False,
) -> list[TransactionPayload]:
    """Materialise rows in collection order."""
    payloads: list[TransactionPayload] = []
    skipped = 0
    for row in rows:
        if row.excluded or (not row.is_valid and not import_anyway):
            skipped += 1
            continue
        payloads.append(materialize_row(row, catalogs))
    logger.debug("materialized=%d skipped=%d import_anyway=%s", len(payloads), skipped, import_anyway)
    return payloads


def build_request(
    rows: Iterable[ParsedRow],
    catalogs: Catalogs,
    *,
    account_id: str,
    file_name: str,
    file_kind: FileKind,
    import_anyway: bool = False,
) -> ImportRequest:
    return ImportRequest(
        account_id=account_id,
        file_name=file_name,
        file_kind=file_kind,
        transactions=materialize(rows, catalogs, import_anyway=import_anyway),
    )
