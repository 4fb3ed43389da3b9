from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from .catalog import Catalogs

"""Config dataclasses for the transaction import tool.

Built by ``txn_import.config.loader`` from the YAML config after schema
validation; everything here is already typed and defaulted.
"""

__all__ = [
    "DatabaseConfig",
    "ExecutorConfig",
    "ValidationConfig",
    "ImportConfig",
    "EXECUTOR_MODES",
]

EXECUTOR_MODES = ("http", "postgres", "dry-run")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback for the PostgreSQL executor.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ExecutorConfig:
    mode: str = "dry-run"  # http | postgres | dry-run
    base_url: str | None = None  # http
    timeout_seconds: float = 30.0  # http; a hung call fails instead of blocking
    table: str = "imported_transactions"  # postgres
    page_size: int = 1000  # postgres execute_values page size
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


@dataclass(frozen=True)
class ValidationConfig:
    percentage_tolerance: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    account_id: str
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    catalogs: Catalogs = field(default_factory=Catalogs)
    catalogs_configured: bool = False  # catalogs or catalog_file present in the YAML
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    error_log_dir: Path = Path("./logs")
