"""Import executors: where a materialised batch gets persisted."""

from __future__ import annotations

from ..models.config_models import EXECUTOR_MODES, ExecutorConfig
from .base import ImportExecutor, SubmissionError
from .dry_run import DryRunImportExecutor
from .http import HttpImportExecutor
from .postgres import PostgresImportExecutor

__all__ = [
    "ImportExecutor",
    "SubmissionError",
    "DryRunImportExecutor",
    "HttpImportExecutor",
    "PostgresImportExecutor",
    "build_executor",
]


def build_executor(cfg: ExecutorConfig, mode: str | None = None) -> ImportExecutor:
    """Instantiate the executor named by ``mode`` (default: ``cfg.mode``)."""
    mode = (mode or cfg.mode).lower()
    if mode == "http":
        if not cfg.base_url:
            raise ValueError("executor.base_url is required for the http executor")
        return HttpImportExecutor(cfg.base_url, timeout=cfg.timeout_seconds)
    if mode == "postgres":
        return PostgresImportExecutor(cfg.database, table=cfg.table, page_size=cfg.page_size)
    if mode == "dry-run":
        return DryRunImportExecutor()
    raise ValueError(f"unknown executor mode '{mode}' (expected one of {list(EXECUTOR_MODES)})")
