from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per row problem (validation error or server-side rejection) or per
file-level failure. ``row=-1`` is the sentinel for file-level records where
no single row is to blame.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_ROW",
    "ROW_VALIDATION_ERROR",
    "EXTRACTION_ERROR",
    "SUBMISSION_ERROR",
    "SERVER_ROW_FAILURE",
]

FILE_LEVEL_ROW = -1

ROW_VALIDATION_ERROR = "ROW_VALIDATION_ERROR"
EXTRACTION_ERROR = "EXTRACTION_ERROR"
SUBMISSION_ERROR = "SUBMISSION_ERROR"
SERVER_ROW_FAILURE = "SERVER_ROW_FAILURE"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name
        sheet: worksheet name, or "<CSV>" for CSV input
        row: row number (1-based). -1 for file-level errors
        error_type: classification in UPPER_SNAKE_CASE
        message: human readable error message
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict なので余計なキーは入らない
        return json.dumps(asdict(self), ensure_ascii=False)
