from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Any

from ..executors.base import ImportExecutor
from ..extract.reader import CSV_SHEET_LABEL, ExtractedFile, read_raw_rows
from ..logging.error_log import ErrorLogBuffer
from ..models.catalog import Catalogs
from ..models.enums import FileKind
from ..models.error_record import ROW_VALIDATION_ERROR, SERVER_ROW_FAILURE, ErrorRecord
from ..models.parsed_row import EDITABLE_FIELDS, ParsedRow
from ..models.payload import ImportRequest
from ..models.processing_result import ImportBatchResult
from .materializer import build_request
from .progress import RowProgress
from .splits import DEFAULT_PERCENTAGE_TOLERANCE
from .validator import validate

"""Import session: the reviewed rows of one upload and the edit loop.

Lifecycle of a row::

    Parsed -> (edit) -> Re-validated -> Valid | Invalid
    Invalid -> (edit again) -> Re-validated -> ...

until the user fixes or excludes it. Editing replaces exactly one row (found
by its immutable ``row_number``) and re-runs validation for that row only.
Submission outcome lives in the aggregate ImportBatchResult; rows carry no
"submitted" state.
"""

__all__ = [
    "RowNotFoundError",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class RowNotFoundError(KeyError):
    """Raised when no row carries the requested row number."""


class ImportSession:
    """Holds the ParsedRows of one uploaded file plus the last batch result."""

    def __init__(
        self,
        file_name: str,
        file_kind: FileKind,
        catalogs: Catalogs,
        *,
        sheet_name: str = CSV_SHEET_LABEL,
        percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
    ) -> None:
        self.file_name = file_name
        self.file_kind = file_kind
        self.sheet_name = sheet_name
        self.catalogs = catalogs
        self.percentage_tolerance = percentage_tolerance
        self._rows: list[ParsedRow] = []
        self._index: dict[int, int] = {}  # row_number -> position
        self.last_result: ImportBatchResult | None = None

    # -- construction -----------------------------------------------------

    @classmethod
    def from_extracted(
        cls,
        extracted: ExtractedFile,
        catalogs: Catalogs,
        *,
        percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
    ) -> ImportSession:
        session = cls(
            extracted.file_name,
            extracted.kind,
            catalogs,
            sheet_name=extracted.sheet_name,
            percentage_tolerance=percentage_tolerance,
        )
        session.load(extracted.rows)
        return session

    @classmethod
    def from_rows(
        cls,
        raw_rows: Iterable[Mapping[str, Any]],
        catalogs: Catalogs,
        *,
        file_name: str = "upload.csv",
        file_kind: FileKind = FileKind.CSV,
        percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
    ) -> ImportSession:
        """Build a session from rows already extracted elsewhere."""
        session = cls(file_name, file_kind, catalogs, percentage_tolerance=percentage_tolerance)
        session.load(raw_rows)
        return session

    @classmethod
    def from_file(
        cls,
        path: Path,
        catalogs: Catalogs,
        *,
        content_type: str | None = None,
        percentage_tolerance: Decimal = DEFAULT_PERCENTAGE_TOLERANCE,
    ) -> ImportSession:
        """Extract ``path`` and run the first validation pass.

        Raises:
            ExtractionError: the file cannot be read; no session is created
        """
        extracted = read_raw_rows(path, content_type)
        return cls.from_extracted(extracted, catalogs, percentage_tolerance=percentage_tolerance)

    def load(self, raw_rows: Iterable[Mapping[str, Any]]) -> None:
        """Replace the session rows with freshly lifted and validated rows."""
        raw_list = list(raw_rows)
        rows: list[ParsedRow] = []
        with RowProgress(len(raw_list)) as progress:
            for position, raw in enumerate(raw_list):
                row = self._revalidate(ParsedRow.from_raw(position + 1, raw))
                rows.append(row)
                progress.advance(valid=row.is_valid)
        self._rows = rows
        self._index = {row.row_number: i for i, row in enumerate(rows)}
        self.last_result = None
        valid, invalid = self.counts()
        if invalid:
            logger.warning("Found %d row(s) with errors. Please review before importing.", invalid)
        else:
            logger.info("All %d transactions are valid", valid)

    # -- validation -------------------------------------------------------

    def _revalidate(self, row: ParsedRow) -> ParsedRow:
        result = validate(
            row,
            self.catalogs.category_names(),
            self.catalogs.group_names(),
            percentage_tolerance=self.percentage_tolerance,
        )
        return replace(row, errors=result.errors, suggested_category=result.suggested_category)

    # -- queries ----------------------------------------------------------

    @property
    def rows(self) -> list[ParsedRow]:
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, row_number: int) -> ParsedRow:
        try:
            return self._rows[self._index[row_number]]
        except KeyError:
            raise RowNotFoundError(row_number) from None

    def valid_rows(self) -> list[ParsedRow]:
        return [r for r in self._rows if r.is_valid]

    def invalid_rows(self) -> list[ParsedRow]:
        return [r for r in self._rows if not r.is_valid]

    def counts(self) -> tuple[int, int]:
        """(valid, invalid) row counts."""
        valid = sum(1 for r in self._rows if r.is_valid)
        return valid, len(self._rows) - valid

    # -- edit loop --------------------------------------------------------

    def _store(self, row: ParsedRow) -> ParsedRow:
        self._rows[self._index[row.row_number]] = row
        return row

    def edit(self, row_number: int, **changes: Any) -> ParsedRow:
        """Amend one row's input fields and re-validate that row only.

        Raises:
            RowNotFoundError: unknown ``row_number``
            ValueError: ``changes`` names something other than an input field
        """
        current = self.get(row_number)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"not editable: {sorted(unknown)}")
        # 編集後は列数超過の指摘を解除 (利用者が値を直した前提)
        updated = self._revalidate(replace(current, **changes, extra_fields=(), is_edited=True))
        logger.debug(
            "edit row=%d fields=%s valid=%s errors=%d",
            row_number,
            sorted(changes),
            updated.is_valid,
            len(updated.errors),
        )
        return self._store(updated)

    def exclude(self, row_number: int) -> ParsedRow:
        """Leave a row out of the submitted batch."""
        return self._store(replace(self.get(row_number), excluded=True))

    def include(self, row_number: int) -> ParsedRow:
        return self._store(replace(self.get(row_number), excluded=False))

    def reset(self) -> None:
        """Discard every row and the last result (user starts over)."""
        self._rows = []
        self._index = {}
        self.last_result = None

    # -- submission -------------------------------------------------------

    def build_request(self, account_id: str, *, import_anyway: bool = False) -> ImportRequest:
        return build_request(
            self._rows,
            self.catalogs,
            account_id=account_id,
            file_name=self.file_name,
            file_kind=self.file_kind,
            import_anyway=import_anyway,
        )

    def submit(
        self,
        executor: ImportExecutor,
        account_id: str,
        *,
        import_anyway: bool = False,
    ) -> ImportBatchResult:
        """Materialise and submit the batch.

        Raises:
            SubmissionError: the executor could not take the batch; rows are
                left exactly as they were so the user can retry
        """
        request = self.build_request(account_id, import_anyway=import_anyway)
        logger.info(
            "Submitting %d transaction(s) from %s to account %s",
            len(request),
            self.file_name,
            account_id,
        )
        result = executor.submit(request)
        self.last_result = result
        return result

    def server_failures(self) -> dict[int, str]:
        """Row number -> server error for rows the last submission rejected."""
        if self.last_result is None:
            return {}
        return self.last_result.failures()

    # -- error log --------------------------------------------------------

    def error_records(self) -> list[ErrorRecord]:
        records: list[ErrorRecord] = []
        for row in self._rows:
            for message in row.errors:
                records.append(
                    ErrorRecord.create(self.file_name, self.sheet_name, row.row_number, ROW_VALIDATION_ERROR, message)
                )
        for row_number, message in sorted(self.server_failures().items()):
            records.append(
                ErrorRecord.create(self.file_name, self.sheet_name, row_number, SERVER_ROW_FAILURE, message)
            )
        return records

    def write_error_log(self, buffer: ErrorLogBuffer) -> int:
        """Queue every row error in ``buffer``; returns the number of records."""
        records = self.error_records()
        buffer.extend(records)
        return len(records)
