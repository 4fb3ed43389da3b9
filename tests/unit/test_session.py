from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from txn_import.executors.base import SubmissionError
from txn_import.executors.dry_run import DryRunImportExecutor
from txn_import.logging.error_log import ErrorLogBuffer
from txn_import.models.enums import RowStatus
from txn_import.models.processing_result import ImportBatchResult, RowOutcome
from txn_import.services.session import ImportSession, RowNotFoundError


def _raw(i: int, **kw) -> dict:
    row = {"date": "2024-01-15", "type": "EXPENSE", "amount": "100", "description": f"row {i}"}
    row.update(kw)
    return row


@pytest.fixture()
def session(catalogs) -> ImportSession:
    raws = [_raw(i) for i in range(1, 11)]
    raws[4] = _raw(5, amount="")  # row 5 invalid
    return ImportSession.from_rows(raws, catalogs, file_name="t.csv")


def test_rows_are_numbered_from_one(session):
    assert [r.row_number for r in session.rows] == list(range(1, 11))
    assert session.counts() == (9, 1)
    assert session.get(5).errors == ("Amount is required",)


def test_edit_touches_only_that_row(session):
    before = {r.row_number: r for r in session.rows}
    updated = session.edit(5, amount="250")
    assert updated.is_valid
    assert updated.is_edited
    assert updated.amount == "250"
    for r in session.rows:
        if r.row_number != 5:
            assert r is before[r.row_number]
    assert session.counts() == (10, 0)


def test_edit_can_make_a_row_invalid(session):
    updated = session.edit(3, type="REFUND")
    assert not updated.is_valid
    assert updated.row_number == 3
    assert session.counts() == (8, 2)


def test_edit_refreshes_suggestion(session):
    assert session.edit(2, category="Grocerys").suggested_category == "Groceries"
    assert session.edit(2, category="Entertainment").suggested_category is None


def test_edit_unknown_row_or_field(session):
    with pytest.raises(RowNotFoundError):
        session.edit(99, amount="1")
    with pytest.raises(ValueError):
        session.edit(1, errors=())
    with pytest.raises(ValueError):
        session.edit(1, row_number=7)


def test_exclude_and_include(session):
    session.exclude(2)
    assert 2 not in session.build_request("acc-1").row_numbers()
    session.include(2)
    assert 2 in session.build_request("acc-1").row_numbers()


def test_submit_only_valid_rows(session):
    executor = DryRunImportExecutor()
    result = session.submit(executor, "acc-1")
    assert result.success_count == 9
    assert result.failed_count == 0
    assert 5 not in executor.submitted[0].row_numbers()
    assert session.last_result is result


def test_import_anyway_maps_failures_to_rows(session):
    result = session.submit(DryRunImportExecutor(), "acc-1", import_anyway=True)
    assert result.success_count == 9
    assert result.failed_count == 1
    assert session.server_failures() == {5: "amount must be a positive number"}


def test_submission_error_leaves_rows_untouched(session):
    executor = MagicMock()
    executor.submit.side_effect = SubmissionError("boom")
    before = session.rows
    with pytest.raises(SubmissionError):
        session.submit(executor, "acc-1")
    assert session.rows == before
    assert session.last_result is None


def test_failures_without_message():
    result = ImportBatchResult(1, 1, rows=[RowOutcome(1, RowStatus.SUCCESS), RowOutcome(2, RowStatus.FAILED)])
    assert result.failures() == {2: "import failed"}
    assert result.total == 2


def test_error_records_and_log(session, temp_workdir):
    session.last_result = ImportBatchResult(
        0, 1, rows=[RowOutcome(3, RowStatus.FAILED, error_message="duplicate")]
    )
    records = session.error_records()
    assert [(r.row, r.error_type) for r in records] == [
        (5, "ROW_VALIDATION_ERROR"),
        (3, "SERVER_ROW_FAILURE"),
    ]
    assert all(r.sheet == "<CSV>" for r in records)
    buffer = ErrorLogBuffer(temp_workdir / "logs")
    assert session.write_error_log(buffer) == 2
    assert len(buffer) == 2


def test_reset(session):
    session.reset()
    assert len(session) == 0
    assert session.server_failures() == {}


def test_load_logs_outcome(catalogs, caplog):
    caplog.set_level("INFO", logger="txn_import.services.session")
    ImportSession.from_rows([_raw(1)], catalogs)
    assert "All 1 transactions are valid" in caplog.text
    caplog.clear()
    ImportSession.from_rows([_raw(1, type="")], catalogs)
    assert "Found 1 row(s) with errors" in caplog.text


def test_rows_are_immutable(session):
    row = session.get(1)
    with pytest.raises(Exception):
        row.amount = "5"  # type: ignore[misc]
    assert replace(row, amount="5").row_number == 1
