from __future__ import annotations

from dataclasses import dataclass, field

from .enums import RowStatus

"""Result models for validation and submission.

ValidationResult is the verdict for one row; ImportBatchResult is what an
import executor reports back for one submitted batch; ImportSummary
aggregates a whole run for the SUMMARY line.
"""

__all__ = [
    "ValidationResult",
    "RowOutcome",
    "ImportBatchResult",
    "ImportSummary",
]


@dataclass(frozen=True)
class ValidationResult:
    """Verdict of the row validator. ``is_valid`` is derived from ``errors``."""
    errors: tuple[str, ...] = ()
    suggested_category: str | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class RowOutcome:
    """Server-side result for one submitted row."""
    row_number: int
    status: RowStatus
    transaction_id: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ImportBatchResult:
    """Aggregate (and, when the executor reports it, per-row) submission result."""
    success_count: int
    failed_count: int
    import_history_id: str | None = None
    rows: list[RowOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.failed_count

    def failures(self) -> dict[int, str]:
        """Row number -> error message for rows the executor rejected."""
        return {
            r.row_number: r.error_message or "import failed"
            for r in self.rows
            if r.status is RowStatus.FAILED
        }


@dataclass(frozen=True)
class ImportSummary:
    """Everything the SUMMARY line reports for one run."""
    file_name: str
    total_rows: int
    valid_rows: int
    invalid_rows: int
    submitted_rows: int = 0
    success_count: int = 0
    failed_count: int = 0
    elapsed_seconds: float = 0.0
