from __future__ import annotations

import math
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

"""Date normalizer for heterogeneous spreadsheet date cells.

Three encodings are accepted, tried in this fixed order, first success wins:

1. spreadsheet serial: whole days since 1899-12-30. Common spreadsheet tools
   count a phantom 1900-02-29 as serial 60; with this anchor serial 61 is
   1900-03-01 as they show it, while serials 1..60 land one day earlier
   (60 is 1900-02-28). Not corrected.
2. ISO-like text: ``YYYY-MM-DD`` (optionally with a time part) or
   ``YYYY/M/D``.
3. day-first text: ``DD/MM/YYYY`` or ``DD-MM-YYYY``; exactly three integer
   parts with a four-digit year (``01/02/24`` is rejected, the century is
   unknown), never reinterpreted as month-first.

``normalize`` never raises: None means "not a date" and callers turn that
into a row validation error. Dates are timezone-naive calendar dates.
"""

__all__ = [
    "SPREADSHEET_EPOCH",
    "MAX_SERIAL",
    "DATE_STRATEGIES",
    "from_serial",
    "from_iso",
    "from_day_first",
    "normalize",
    "to_serial",
    "format_iso",
]

SPREADSHEET_EPOCH = date(1899, 12, 30)
MAX_SERIAL = 2958465  # 9999-12-31

DAY_FIRST_SEPARATORS = ("/", "-")

_YEAR_FIRST = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")

DateStrategy = Callable[[Any], date | None]


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def from_serial(value: Any) -> date | None:
    """Interpret a number (or numeric text) as a spreadsheet serial day count.

    Fractional parts (time of day) are dropped.
    """
    number = _as_number(value)
    if number is None or number < 0 or number > MAX_SERIAL:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=math.floor(number))


def from_iso(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    m = _YEAR_FIRST.match(text)
    if m is None:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def from_day_first(value: Any) -> date | None:
    """Parse ``day<sep>month<sep>year``; only exactly three parts qualify."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    for sep in DAY_FIRST_SEPARATORS:
        if sep not in text:
            continue
        parts = [p.strip() for p in text.split(sep)]
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            continue
        if len(parts[2]) != 4:
            return None
        day, month, year = (int(p) for p in parts)
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


DATE_STRATEGIES: tuple[DateStrategy, ...] = (from_serial, from_iso, from_day_first)


def normalize(value: Any) -> date | None:
    """Convert a raw date cell into a calendar date, or None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and not value.strip():
        return None
    for strategy in DATE_STRATEGIES:
        result = strategy(value)
        if result is not None:
            return result
    return None


def to_serial(value: date | datetime) -> int | float:
    """Encode a date back into a spreadsheet serial.

    A datetime keeps its time of day as a fraction; integral results are
    returned as int.
    """
    if isinstance(value, datetime):
        delta = value.replace(tzinfo=None) - datetime.combine(SPREADSHEET_EPOCH, datetime.min.time())
        serial = delta.total_seconds() / 86400
        return int(serial) if serial.is_integer() else serial
    return (value - SPREADSHEET_EPOCH).days


def format_iso(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
