from __future__ import annotations

from enum import Enum

"""Enumerations shared across the import pipeline."""

__all__ = [
    "TransactionType",
    "SplitType",
    "FileKind",
    "RowStatus",
]


class _ParsableEnum(Enum):
    """Enum whose members can be looked up from free text (case-insensitive)."""

    @classmethod
    def parse(cls, value: str) -> _ParsableEnum:
        """Return the member named by ``value``.

        Raises:
            ValueError: when ``value`` does not name a member
        """
        key = str(value).strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"{value!r} is not a valid {cls.__name__}") from None

    @classmethod
    def choices(cls) -> list[str]:
        return [m.value for m in cls]


class TransactionType(_ParsableEnum):
    """Kind of a transaction. The allowed set itself is case-sensitive (upper)."""
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    TRANSFER = "TRANSFER"


class SplitType(_ParsableEnum):
    """Strategy for dividing a shared expense among participants."""
    EQUAL = "EQUAL"
    PERCENTAGE = "PERCENTAGE"
    SHARES = "SHARES"
    EXACT = "EXACT"


class FileKind(_ParsableEnum):
    """Detected kind of the uploaded file."""
    CSV = "CSV"
    EXCEL = "EXCEL"


class RowStatus(_ParsableEnum):
    """Per-row outcome reported by an import executor."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
