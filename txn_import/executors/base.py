from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models.payload import ImportRequest
from ..models.processing_result import ImportBatchResult

"""Import executor boundary.

An executor persists one materialised batch and reports how many rows
succeeded and failed (and, when it can, which ones). Anything that stops the
whole batch (network failure, rejected request, database error) is raised as
SubmissionError; the reviewed rows stay untouched so the user can retry.
"""

__all__ = [
    "SubmissionError",
    "ImportExecutor",
]


class SubmissionError(Exception):
    """Raised when a batch could not be submitted at all."""


@runtime_checkable
class ImportExecutor(Protocol):
    def submit(self, request: ImportRequest) -> ImportBatchResult:
        ...
