"""File extraction: uploaded CSV / workbook files and the import template."""

from .reader import (
    ExtractedFile,
    ExtractionError,
    EmptyFileError,
    MissingColumnsError,
    UnsupportedFormatError,
    read_raw_rows,
)
from .template import write_template

__all__ = [
    "ExtractedFile",
    "ExtractionError",
    "EmptyFileError",
    "MissingColumnsError",
    "UnsupportedFormatError",
    "read_raw_rows",
    "write_template",
]
