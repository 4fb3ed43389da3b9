from __future__ import annotations

import doctest

from txn_import.models.processing_result import ImportSummary
from txn_import.services import summary
from txn_import.services.summary import format_seconds, render_summary_line


def test_render_summary_line():
    s = ImportSummary("t.csv", 3, 1, 2, 1, 1, 0, 0.125)
    assert render_summary_line(s) == (
        "SUMMARY file=t.csv rows=3 valid=1 invalid=2 submitted=1 success=1 failed=0 elapsed_sec=0.125"
    )


def test_format_seconds():
    assert format_seconds(0) == "0"
    assert format_seconds(2.0) == "2"
    assert format_seconds(0.0012) == "0.0012"
    assert format_seconds(1.23456) == "1.235"


def test_module_doctests():
    assert doctest.testmod(summary).failed == 0
