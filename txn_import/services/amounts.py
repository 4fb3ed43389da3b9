from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

"""Numeric parsing shared by the validator, split parser and materializer."""

__all__ = [
    "parse_decimal",
    "format_decimal",
]


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a cell into a finite Decimal; None when it is not a plain number.

    Floats go through ``str`` so 1500.1 stays 1500.1 rather than its binary
    expansion.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    if not number.is_finite():
        return None
    return number


def format_decimal(value: Decimal) -> str:
    """Render without exponent or trailing zeros: Decimal('90.00') -> '90'."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
