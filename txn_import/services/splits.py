from __future__ import annotations

from decimal import Decimal

from ..models.enums import SplitType
from ..models.split import ParticipantsResult, SplitParticipant
from .amounts import format_decimal, parse_decimal

"""Split definition parser & validator for the ``participants`` column.

Grammar: comma separated entries. EQUAL entries are bare identifiers; every
other split type needs ``identifier:number``.

Arithmetic rules per split type:

- EQUAL: none (the backend divides the total evenly)
- PERCENTAGE: values sum to 100, within ``percentage_tolerance``
- EXACT: values sum to the transaction amount (skipped when the amount is
  unknown or invalid)
- SHARES: every value is a positive integer, no sum constraint

Sum checks only run once every entry parsed; a malformed entry already makes
the row invalid and its sum would be meaningless.
"""

__all__ = [
    "ENTRY_SEPARATOR",
    "VALUE_SEPARATOR",
    "PERCENTAGE_TOTAL",
    "DEFAULT_PERCENTAGE_TOLERANCE",
    "parse_participants",
]

ENTRY_SEPARATOR = ","
VALUE_SEPARATOR = ":"
PERCENTAGE_TOTAL = Decimal(100)
DEFAULT_PERCENTAGE_TOLERANCE = Decimal("0.01")


def _parse_bare(entry: str) -> tuple[SplitParticipant | None, str | None]:
    if VALUE_SEPARATOR in entry:
        return None, f"Participant '{entry}' must not have a value for EQUAL split"
    return SplitParticipant(identifier=entry), None


def _parse_valued(entry: str, split_type: SplitType) -> tuple[SplitParticipant | None, str | None]:
    parts = entry.split(VALUE_SEPARATOR)
    if len(parts) != 2 or not parts[0].strip():
        return None, f"Invalid participant entry '{entry}' (expected identifier:number)"
    identifier = parts[0].strip()
    value = parse_decimal(parts[1])
    if value is None:
        return None, f"Invalid participant entry '{entry}' (expected identifier:number)"
    if split_type is SplitType.SHARES and (value <= 0 or value != value.to_integral_value()):
        return None, f"Shares for '{identifier}' must be a positive integer"
    return SplitParticipant(identifier=identifier, value=value), None


def parse_participants(
    text: str | None,
    split_type: SplitType | str,
    amount: Decimal | None = None,
    *,
    percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
) -> ParticipantsResult:
    """Decode and check the participants list for one shared expense.

    Parameters
    ----------
    text: raw ``participants`` cell
    split_type: split strategy (enum member or its name)
    amount: validated transaction total; only EXACT uses it
    percentage_tolerance: accepted distance of a PERCENTAGE sum from 100

    Raises
    ------
    ValueError: ``split_type`` is not a known split strategy (callers check it
        first; malformed *participants* never raise)
    """
    if not isinstance(split_type, SplitType):
        split_type = SplitType.parse(split_type)

    if not text or not text.strip():
        return ParticipantsResult(errors=["participants must list at least one participant"])

    participants: list[SplitParticipant] = []
    errors: list[str] = []
    for position, raw in enumerate(text.split(ENTRY_SEPARATOR), start=1):
        entry = raw.strip()
        if not entry:
            errors.append(f"Empty participant entry at position {position}")
            continue
        if split_type is SplitType.EQUAL:
            participant, error = _parse_bare(entry)
        else:
            participant, error = _parse_valued(entry, split_type)
        if error is not None:
            errors.append(error)
        elif participant is not None:
            participants.append(participant)

    if errors:
        return ParticipantsResult(participants=participants, errors=errors)

    total = sum((p.value for p in participants if p.value is not None), Decimal(0))
    if split_type is SplitType.PERCENTAGE:
        if abs(total - PERCENTAGE_TOTAL) > percentage_tolerance:
            errors.append(f"Percentages must sum to 100 (got {format_decimal(total)})")
    elif split_type is SplitType.EXACT and amount is not None:
        if total != amount:
            errors.append(
                f"Exact amounts must sum to the transaction amount {format_decimal(amount)} "
                f"(got {format_decimal(total)})"
            )
    return ParticipantsResult(participants=participants, errors=errors)
