"""Domain models for the transaction import pipeline.

Plain dataclasses and enums only; no I/O happens in this package.
"""

from .catalog import CatalogEntry, Catalogs
from .config_models import DatabaseConfig, ExecutorConfig, ImportConfig, ValidationConfig
from .enums import FileKind, RowStatus, SplitType, TransactionType
from .error_record import ErrorRecord
from .parsed_row import ParsedRow, RawRow
from .payload import ImportRequest, TransactionPayload
from .processing_result import ImportBatchResult, ImportSummary, RowOutcome, ValidationResult
from .split import ParticipantsResult, SplitParticipant

__all__ = [
    # Catalogs & configuration
    "CatalogEntry",
    "Catalogs",
    "DatabaseConfig",
    "ExecutorConfig",
    "ImportConfig",
    "ValidationConfig",
    # Enums
    "FileKind",
    "RowStatus",
    "SplitType",
    "TransactionType",
    # Rows
    "ParsedRow",
    "RawRow",
    "ParticipantsResult",
    "SplitParticipant",
    # Payloads & results
    "ErrorRecord",
    "ImportBatchResult",
    "ImportRequest",
    "ImportSummary",
    "RowOutcome",
    "TransactionPayload",
    "ValidationResult",
]
