from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..models.parsed_row import COLUMN_FIELDS

"""Downloadable import template (CSV or XLSX).

The CSV variant carries its instructions as '#' comment lines above the
header (the reader skips them); the workbook variant puts them on an
"Instructions" sheet next to the "Transactions" sheet.
"""

__all__ = [
    "TEMPLATE_COLUMNS",
    "EXAMPLE_ROWS",
    "instruction_lines",
    "write_template",
]

logger = logging.getLogger(__name__)

TEMPLATE_COLUMNS: list[str] = list(COLUMN_FIELDS)

EXAMPLE_ROWS: list[list[object]] = [
    ["2024-01-15", "EXPENSE", 50000, "Groceries at supermarket", "Supermarket XYZ", "Food", "grocery", "Weekly shopping", "", "", "", ""],
    ["15/01/2024", "INCOME", 500000, "Monthly salary", "Company ABC", "Salary", "work", "", "", "", "", ""],
    ["2024-01-16", "EXPENSE", 35000, "Gas station", "Shell Station", "Transport", "fuel,car", "Full tank", "", "", "", ""],
    ["2024-01-17", "EXPENSE", 60000, "Dinner with friends", "Restaurant La Piazza", "Food", "restaurant", "Group dinner",
     "Family", "user@example.com", "EQUAL", "user1@example.com,user2@example.com,user3@example.com"],
    ["2024-01-18", "EXPENSE", 90000, "Pizza with group (70/30)", "Pizza Hut", "Food", "", "",
     "Friends", "user@example.com", "PERCENTAGE", "user1@example.com:70,user2@example.com:30"],
    ["2024-01-19", "EXPENSE", 100000, "Rent split exactly", "Landlord", "Housing", "", "",
     "Roommates", "user@example.com", "EXACT", "user1@example.com:50000,user2@example.com:50000"],
    ["2024-01-20", "EXPENSE", 80000, "Food split by shares (2:1)", "Market", "Food", "", "",
     "Family", "user@example.com", "SHARES", "user1@example.com:2,user2@example.com:1"],
]


def instruction_lines(categories: Iterable[str] = (), groups: Iterable[str] = ()) -> list[str]:
    """Instruction text, one entry per line, without the comment prefix."""
    return [
        "INSTRUCTIONS",
        "Required fields: date, type, amount, description",
        "Date formats accepted: YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY or spreadsheet date numbers",
        "Type: must be EXPENSE, INCOME or TRANSFER",
        "Amount: positive number without currency symbols",
        "Payee: recipient or merchant name (optional)",
        f"Available categories: {', '.join(categories)}",
        f"Available groups: {', '.join(groups)}",
        "Tags: separate multiple tags with commas",
        "",
        "SHARED EXPENSES (optional):",
        "sharedGroup: name of the group (leave empty for non-shared expenses)",
        "paidBy: email of the person who paid (required if sharedGroup is set)",
        "splitType: EQUAL, PERCENTAGE, SHARES or EXACT (required if sharedGroup is set)",
        "participants: format depends on splitType",
        "  EQUAL: email1,email2,email3 (no values)",
        "  PERCENTAGE: email1:percent1,email2:percent2 (must sum to 100)",
        "  EXACT: email1:amount1,email2:amount2 (must sum to the transaction amount)",
        "  SHARES: email1:shares1,email2:shares2 (positive integers)",
    ]


def _examples_frame() -> pd.DataFrame:
    return pd.DataFrame(EXAMPLE_ROWS, columns=TEMPLATE_COLUMNS)


def write_template(path: Path, categories: Iterable[str] = (), groups: Iterable[str] = ()) -> Path:
    """Write the template to ``path``; ``.csv`` gives CSV, ``.xlsx`` a workbook.

    Raises:
        ValueError: unsupported extension
    """
    lines = instruction_lines(list(categories), list(groups))
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        header = "".join(f"# {ln}".rstrip() + "\n" for ln in lines)
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(header)
            _examples_frame().to_csv(f, index=False, lineterminator="\n")
    elif suffix == ".xlsx":
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame({"Instructions": lines}).to_excel(writer, sheet_name="Instructions", index=False)
            _examples_frame().to_excel(writer, sheet_name="Transactions", index=False)
    else:
        raise ValueError(f"unsupported template format '{path.suffix}' (use .csv or .xlsx)")
    logger.debug("template written path=%s rows=%d", path, len(EXAMPLE_ROWS))
    return path
