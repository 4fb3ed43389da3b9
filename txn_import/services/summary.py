from __future__ import annotations

from ..models.processing_result import ImportSummary

"""SUMMARY line rendering.

Format::

    SUMMARY file=<name> rows=<n> valid=<v> invalid=<i> submitted=<s> success=<ok> failed=<f> elapsed_sec=<e>
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integral values print without a fraction; tiny values never use exponent notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line for one import run.

    Examples:
        >>> s = ImportSummary(file_name="t.csv", total_rows=3, valid_rows=1, invalid_rows=2,
        ...                   submitted_rows=1, success_count=1, failed_count=0, elapsed_seconds=2.0)
        >>> render_summary_line(s)
        'SUMMARY file=t.csv rows=3 valid=1 invalid=2 submitted=1 success=1 failed=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY file={summary.file_name} "
        f"rows={summary.total_rows} "
        f"valid={summary.valid_rows} "
        f"invalid={summary.invalid_rows} "
        f"submitted={summary.submitted_rows} "
        f"success={summary.success_count} "
        f"failed={summary.failed_count} "
        f"elapsed_sec={format_seconds(summary.elapsed_seconds)}"
    )
