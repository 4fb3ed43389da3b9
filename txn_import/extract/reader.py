from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.enums import FileKind
from ..models.parsed_row import EXTRA_FIELDS_KEY, REQUIRED_COLUMNS, RawRow
from ..services.dates import to_serial

"""Raw row extractor: uploaded CSV / workbook -> header-keyed RawRows.

- CSV: UTF-8 (BOM tolerated), comma separated, header row required. Lines
  starting with '#' are comments (the CSV template carries its instructions
  that way) and blank lines are skipped. Surplus fields on a line are kept
  apart and reported against that row only.
- Workbook: the sheet named "transactions" (any case) is preferred, else the
  first sheet. First row is the header. Date-typed cells are turned back into
  spreadsheet serials so the date normalizer sees what the file encoded.

Any failure here is fatal to the import session: the caller gets an
ExtractionError and no partial rows.
"""

__all__ = [
    "ExtractionError",
    "UnsupportedFormatError",
    "EmptyFileError",
    "MissingColumnsError",
    "ExtractedFile",
    "PREFERRED_SHEET",
    "CSV_SHEET_LABEL",
    "detect_file_kind",
    "read_csv_rows",
    "read_workbook_rows",
    "read_raw_rows",
]

logger = logging.getLogger(__name__)

PREFERRED_SHEET = "transactions"
CSV_SHEET_LABEL = "<CSV>"
COMMENT_PREFIX = "#"
# CSV record separators only; U+2028, \x0b, \x0c stay inside cells
LINE_BREAK = re.compile(r"\r\n|\n|\r")

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm", ".xls"}
CSV_CONTENT_TYPES = {"text/csv", "application/csv"}
EXCEL_CONTENT_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ExtractionError(Exception):
    """Raised when the uploaded file cannot be turned into rows."""


class UnsupportedFormatError(ExtractionError):
    """Raised when neither extension nor content type names CSV or a workbook."""


class EmptyFileError(ExtractionError):
    """Raised when the file has no header row at all."""


class MissingColumnsError(ExtractionError):
    """Raised when required columns are missing from the header."""


@dataclass
class ExtractedFile:
    file_name: str
    kind: FileKind
    sheet_name: str  # worksheet used, CSV_SHEET_LABEL for CSV
    columns: list[str]
    rows: list[RawRow] = field(default_factory=list)


def detect_file_kind(file_name: str, content_type: str | None = None) -> FileKind:
    """Detect the file kind from its extension, then from its content type."""
    suffix = Path(file_name).suffix.lower()
    if suffix in CSV_EXTENSIONS:
        return FileKind.CSV
    if suffix in EXCEL_EXTENSIONS:
        return FileKind.EXCEL
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype in CSV_CONTENT_TYPES:
        return FileKind.CSV
    if ctype in EXCEL_CONTENT_TYPES:
        return FileKind.EXCEL
    raise UnsupportedFormatError(
        f"unsupported file '{file_name}' (content type: {content_type or 'unknown'}); "
        "upload a CSV or Excel file"
    )


def _clean_cell(value: Any) -> Any:
    """Normalise one cell: None for blanks, serials for dates, ints for integral floats."""
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, (datetime, date)):
        return to_serial(value)
    if isinstance(value, bool):
        return str(value).upper()
    if hasattr(value, "item"):  # numpy scalar -> python
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _cells_to_row(columns: list[str], values: Sequence[Any]) -> RawRow:
    row: RawRow = {}
    for col, val in zip(columns, values, strict=False):
        if not col or col.startswith("Unnamed:") or col in row:
            continue
        cleaned = _clean_cell(val)
        if cleaned is not None:
            row[col] = cleaned
    return row


def _frame_to_rows(frame: pd.DataFrame) -> tuple[list[str], list[RawRow]]:
    columns = [str(c).strip() for c in frame.columns]
    rows: list[RawRow] = []
    for raw in frame.itertuples(index=False, name=None):
        row = _cells_to_row(columns, raw)
        # 全セル空の行はスキップ
        if row:
            rows.append(row)
    return columns, rows


def _check_columns(columns: list[str], file_name: str) -> None:
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise MissingColumnsError(f"'{file_name}' missing required columns: {missing}")


def _parse_csv_text(text: str) -> tuple[pd.DataFrame, int]:
    """Parse CSV text with the header as an ordinary first row.

    Returns the all-text frame and the header width. Lines carrying more
    fields than the header are kept: the frame is re-read wide enough to
    hold them, so their surplus lands in positional columns past the header.
    """
    wide_lines: list[int] = []

    def _note_wide_line(fields: list[str]) -> None:
        wide_lines.append(len(fields))
        return None

    options: dict[str, Any] = {
        "header": None,
        "dtype": str,
        "keep_default_na": False,
        "skip_blank_lines": True,
        "engine": "python",
    }
    frame = pd.read_csv(io.StringIO(text), on_bad_lines=_note_wide_line, **options)
    width = frame.shape[1]
    if wide_lines:
        frame = pd.read_csv(io.StringIO(text), names=list(range(max(wide_lines))), **options)
    return frame, width


def read_csv_rows(source: Path | bytes | str, file_name: str | None = None) -> ExtractedFile:
    """Read CSV content (path, raw bytes, or decoded text).

    A data line with more fields than the header (typically an unquoted
    comma inside a cell) keeps its first fields aligned with the header;
    the surplus goes under EXTRA_FIELDS_KEY and becomes a row error.
    """
    name = file_name or (source.name if isinstance(source, Path) else "upload.csv")
    try:
        if isinstance(source, Path):
            text = source.read_bytes().decode("utf-8-sig")
        elif isinstance(source, bytes):
            text = source.decode("utf-8-sig")
        else:
            text = source.lstrip("\ufeff")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"cannot read '{name}': {e}") from e

    lines = [ln for ln in LINE_BREAK.split(text) if not ln.lstrip().startswith(COMMENT_PREFIX)]
    if not any(ln.strip() for ln in lines):
        raise EmptyFileError(f"'{name}' has no header row")
    try:
        frame, width = _parse_csv_text("\n".join(lines))
    except pd.errors.EmptyDataError as e:
        raise EmptyFileError(f"'{name}' has no header row") from e
    except (pd.errors.ParserError, csv.Error) as e:
        raise ExtractionError(f"CSV parsing error in '{name}': {e}") from e

    cells = frame.values.tolist()
    columns = [str(_clean_cell(v) or "") for v in cells[0][:width]]
    _check_columns(columns, name)
    rows: list[RawRow] = []
    for values in cells[1:]:
        row = _cells_to_row(columns, values[:width])
        extra = [str(c) for c in (_clean_cell(v) for v in values[width:]) if c is not None]
        if extra:
            row[EXTRA_FIELDS_KEY] = tuple(extra)
        # 全セル空の行はスキップ
        if row:
            rows.append(row)
    overflowing = sum(1 for r in rows if EXTRA_FIELDS_KEY in r)
    if overflowing:
        logger.warning("csv file=%s: %d row(s) have more fields than the header", name, overflowing)
    logger.debug("csv file=%s columns=%s rows=%d", name, columns, len(rows))
    return ExtractedFile(file_name=name, kind=FileKind.CSV, sheet_name=CSV_SHEET_LABEL, columns=columns, rows=rows)


def _pick_sheet(sheet_names: list[str]) -> str:
    for name in sheet_names:
        if str(name).strip().lower() == PREFERRED_SHEET:
            return name
    return sheet_names[0]


def read_workbook_rows(source: Path | bytes, file_name: str | None = None) -> ExtractedFile:
    """Read the transactions sheet of a workbook (path or raw bytes)."""
    name = file_name or (source.name if isinstance(source, Path) else "upload.xlsx")
    handle: Any = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        with pd.ExcelFile(handle) as xls:
            sheet_names = [str(s) for s in xls.sheet_names]
            if not sheet_names:
                raise EmptyFileError(f"'{name}' contains no worksheets")
            sheet = _pick_sheet(sheet_names)
            frame = xls.parse(sheet, header=0)
    except ExtractionError:
        raise
    except Exception as e:  # openpyxl / xlrd raise assorted types for corrupt files
        raise ExtractionError(f"Error reading file '{name}': {e}") from e

    if frame.columns.empty:
        raise EmptyFileError(f"'{name}' sheet '{sheet}' has no header row")
    columns, rows = _frame_to_rows(frame)
    _check_columns(columns, name)
    logger.debug("workbook file=%s sheet=%s columns=%s rows=%d", name, sheet, columns, len(rows))
    return ExtractedFile(file_name=name, kind=FileKind.EXCEL, sheet_name=sheet, columns=columns, rows=rows)


def read_raw_rows(path: Path, content_type: str | None = None) -> ExtractedFile:
    """Extract rows from an uploaded file, detecting its kind first."""
    if not path.exists():
        raise ExtractionError(f"file not found: {path}")
    kind = detect_file_kind(path.name, content_type)
    if kind is FileKind.CSV:
        return read_csv_rows(path)
    return read_workbook_rows(path)
