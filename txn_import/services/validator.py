from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from ..models.enums import SplitType, TransactionType
from ..models.parsed_row import ParsedRow
from ..models.processing_result import ValidationResult
from . import dates
from .amounts import parse_decimal
from .categories import suggest
from .splits import DEFAULT_PERCENTAGE_TOLERANCE, parse_participants

"""Row validator: required fields, enums, amount, date and split checks.

``validate`` is a pure function of the row and the catalogs. Every check
appends its own message and nothing short-circuits, so one pass reports all
of a row's problems at once. Running it twice on an unchanged row yields the
same verdict, which the edit loop relies on.
"""

__all__ = [
    "REQUIRED_FIELDS",
    "SHARED_FIELDS",
    "validate",
    "has_value",
    "extra_fields_error",
]

# (attribute, message when missing)
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("date", "Date is required"),
    ("type", "Type is required"),
    ("amount", "Amount is required"),
    ("description", "Description is required"),
)

# (attribute, column name) of the shared-expense block besides sharedGroup
SHARED_FIELDS: tuple[tuple[str, str], ...] = (
    ("paid_by", "paidBy"),
    ("split_type", "splitType"),
    ("participants", "participants"),
)

TYPE_ERROR = f"Type must be one of: {', '.join(TransactionType.choices())}"
SPLIT_TYPE_ERROR = f"splitType must be one of: {', '.join(SplitType.choices())}"
AMOUNT_ERROR = "Amount must be a positive number"
DATE_ERROR = "Invalid date format. Use YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY or a spreadsheet date"


def extra_fields_error(extra: Sequence[str]) -> str:
    return (
        f"Row has {len(extra)} more field(s) than the header ({', '.join(extra)}); "
        "quote values that contain commas"
    )


def has_value(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _check_shared(
    row: ParsedRow,
    amount: Decimal | None,
    known_groups: Sequence[str] | None,
    percentage_tolerance: Decimal,
) -> list[str]:
    errors: list[str] = []
    if not has_value(row.shared_group):
        if any(has_value(getattr(row, attr)) for attr, _ in SHARED_FIELDS):
            errors.append("sharedGroup is required when paidBy, splitType or participants is set")
        return errors

    if known_groups is not None:
        group = row.shared_group.strip().lower()
        if group not in {g.lower() for g in known_groups}:
            errors.append(f"Unknown group '{row.shared_group.strip()}'")

    # 相互必須チェックを先に済ませてから participants を解析する
    for attr, column in SHARED_FIELDS:
        if not has_value(getattr(row, attr)):
            errors.append(f"{column} is required when sharedGroup is set")

    split_type: SplitType | None = None
    if has_value(row.split_type):
        try:
            split_type = SplitType.parse(row.split_type)
        except ValueError:
            errors.append(SPLIT_TYPE_ERROR)

    if split_type is not None and has_value(row.participants):
        result = parse_participants(
            row.participants,
            split_type,
            amount,
            percentage_tolerance=percentage_tolerance,
        )
        errors.extend(result.errors)
    return errors


def validate(
    row: ParsedRow,
    category_catalog: Sequence[str] = (),
    known_groups: Sequence[str] | None = None,
    *,
    percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
) -> ValidationResult:
    """Validate one row without mutating it.

    Parameters
    ----------
    row: the row under review
    category_catalog: category names, in matching order, for the suggestion
    known_groups: group names; None skips the group membership check
    percentage_tolerance: accepted deviation of PERCENTAGE splits from 100

    Returns
    -------
    ValidationResult with the ordered error list and the suggested category.
    """
    errors: list[str] = []

    if row.extra_fields:
        errors.append(extra_fields_error(row.extra_fields))

    for attr, message in REQUIRED_FIELDS:
        if not has_value(getattr(row, attr)):
            errors.append(message)

    if has_value(row.type):
        try:
            TransactionType.parse(row.type)
        except ValueError:
            errors.append(TYPE_ERROR)

    amount: Decimal | None = None
    if has_value(row.amount):
        parsed = parse_decimal(row.amount)
        if parsed is None or parsed <= 0:
            errors.append(AMOUNT_ERROR)
        else:
            amount = parsed

    if has_value(row.date) and dates.normalize(row.date) is None:
        errors.append(DATE_ERROR)

    errors.extend(_check_shared(row, amount, known_groups, percentage_tolerance))

    suggested = suggest(row.category, category_catalog) if has_value(row.category) else None
    return ValidationResult(errors=tuple(errors), suggested_category=suggested)
