#!/usr/bin/env python3
"""Sample transaction file generator (performance testing / demos).

Generates a CSV or XLSX file in the import template layout with a
configurable share of deliberately broken rows, so both the happy path and
the review loop can be exercised on large inputs.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

COLUMNS = [
    "date", "type", "amount", "description", "payee", "category", "tags", "notes",
    "sharedGroup", "paidBy", "splitType", "participants",
]
CATEGORIES = ["Food", "Groceries", "Housing", "Salary", "Transport", "Utilities"]
PAYEES = ["Supermarket XYZ", "Shell Station", "Landlord", "Company ABC", "Market"]
MEMBERS = ["ana@example.com", "ben@example.com", "chris@example.com"]


def _shared_block(rng: np.random.Generator, amount: int) -> list[str]:
    split = rng.choice(["EQUAL", "PERCENTAGE", "SHARES", "EXACT"])
    a, b = MEMBERS[0], MEMBERS[1]
    if split == "EQUAL":
        participants = f"{a},{b}"
    elif split == "PERCENTAGE":
        participants = f"{a}:60,{b}:40"
    elif split == "SHARES":
        participants = f"{a}:2,{b}:1"
    else:
        half = amount // 2
        participants = f"{a}:{half},{b}:{amount - half}"
    return ["Family", MEMBERS[2], str(split), participants]


def _break_row(rng: np.random.Generator, row: list[Any]) -> None:
    """Introduce exactly one validation problem."""
    kind = rng.integers(0, 4)
    if kind == 0:
        row[2] = ""  # missing amount
    elif kind == 1:
        row[1] = "REFUND"
    elif kind == 2:
        row[0] = "31/02/2024"
    else:
        row[2] = "-10"


def generate_transactions(rows: int, invalid_ratio: float = 0.0, seed: int = 42) -> pd.DataFrame:
    """Build ``rows`` template rows; about ``invalid_ratio`` of them are invalid."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2024-01-01", "2024-12-31", freq="D")
    data: list[list[Any]] = []
    for i in range(rows):
        d = dates[int(rng.integers(0, len(dates)))]
        is_income = rng.random() < 0.1
        amount = int(rng.integers(1, 5000)) * 100
        row: list[Any] = [
            d.strftime("%Y-%m-%d") if i % 2 == 0 else d.strftime("%d/%m/%Y"),
            "INCOME" if is_income else "EXPENSE",
            str(amount),
            f"Transaction {i + 1}",
            str(rng.choice(PAYEES)),
            "Salary" if is_income else str(rng.choice(CATEGORIES)),
            "sample",
            "",
        ]
        row += _shared_block(rng, amount) if (not is_income and rng.random() < 0.2) else ["", "", "", ""]
        if rng.random() < invalid_ratio:
            _break_row(rng, row)
        data.append(row)
    return pd.DataFrame(data, columns=COLUMNS)


def write_file(output: Path, frame: pd.DataFrame) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".csv":
        frame.to_csv(output, index=False)
    else:
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name="Transactions", index=False)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate sample transaction files for the import tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 10k valid rows as CSV
  %(prog)s data/sample.csv --rows 10000

  # workbook with ~5% broken rows
  %(prog)s data/sample.xlsx --rows 2000 --invalid-ratio 0.05
        """,
    )
    parser.add_argument("output", type=Path, help="Output .csv or .xlsx path")
    parser.add_argument("--rows", type=int, default=10_000, help="Number of rows (default: 10,000)")
    parser.add_argument("--invalid-ratio", type=float, default=0.0, help="Share of broken rows (default: 0)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.invalid_ratio <= 1:
        print("Error: --invalid-ratio must be between 0 and 1", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in {".csv", ".xlsx"}:
        print("Error: output must end with .csv or .xlsx", file=sys.stderr)
        return 1

    frame = generate_transactions(args.rows, args.invalid_ratio, args.seed)
    write_file(args.output, frame)
    print(f"Created {args.output}: {len(frame):,} rows")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
