from __future__ import annotations

import logging
import re
from itertools import count

from ..models.enums import RowStatus, TransactionType
from ..models.payload import ImportRequest, TransactionPayload
from ..models.processing_result import ImportBatchResult, RowOutcome

"""Dry-run executor: checks the payload shape, persists nothing.

Rows sent with "import anyway" can still be malformed; those are reported
FAILED with the reason, the way the backend would reject them.
"""

__all__ = ["DryRunImportExecutor"]

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _reject_reason(t: TransactionPayload) -> str | None:
    if not _ISO_DATE.match(t.date or ""):
        return f"invalid date '{t.date}'"
    if t.type not in TransactionType.choices():
        return f"invalid type '{t.type}'"
    if t.amount is None or t.amount <= 0:
        return "amount must be a positive number"
    if not (t.description or "").strip():
        return "description is required"
    return None


class DryRunImportExecutor:
    def __init__(self) -> None:
        self._ids = count(1)
        self.submitted: list[ImportRequest] = []

    def submit(self, request: ImportRequest) -> ImportBatchResult:
        self.submitted.append(request)
        outcomes: list[RowOutcome] = []
        for t in request.transactions:
            reason = _reject_reason(t)
            if reason:
                outcomes.append(RowOutcome(t.row_number, RowStatus.FAILED, error_message=reason))
            else:
                outcomes.append(RowOutcome(t.row_number, RowStatus.SUCCESS, transaction_id=f"dry-run-{next(self._ids)}"))
        ok = sum(1 for o in outcomes if o.status is RowStatus.SUCCESS)
        logger.info("dry-run: %d transaction(s) checked, nothing persisted", len(outcomes))
        return ImportBatchResult(success_count=ok, failed_count=len(outcomes) - ok, rows=outcomes)
