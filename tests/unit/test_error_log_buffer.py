from __future__ import annotations

import json
import re
from pathlib import Path

from txn_import.logging.error_log import ErrorLogBuffer
from txn_import.models.error_record import ErrorRecord

KEYS = {"timestamp", "file", "sheet", "row", "error_type", "message"}


def test_error_record_json_line():
    rec = ErrorRecord.create("t.csv", "<CSV>", 3, "ROW_VALIDATION_ERROR", "Amount is required")
    data = json.loads(rec.to_json_line())
    assert set(data) == KEYS
    assert data["timestamp"].endswith("Z")
    assert data["row"] == 3


def test_flush_writes_json_lines(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("t.csv", "<CSV>", 1, "ROW_VALIDATION_ERROR", "Type is required"))
    buf.extend([ErrorRecord.create("t.csv", "<CSV>", -1, "SUBMISSION_ERROR", "timeout")])
    path = buf.flush()
    assert path.parent == Path("./logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(ln)["row"] for ln in lines] == [1, -1]
    assert len(buf) == 0


def test_flush_appends_to_same_file(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "custom")
    buf.append(ErrorRecord.create("t.csv", "<CSV>", 1, "ROW_VALIDATION_ERROR", "x"))
    first = buf.flush()
    buf.append(ErrorRecord.create("t.csv", "<CSV>", 2, "ROW_VALIDATION_ERROR", "y"))
    assert buf.flush() == first
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_empty_flush_creates_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "empty")
    assert buf.flush() is None
    assert not (temp_workdir / "empty").exists()
