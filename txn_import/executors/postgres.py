from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..models.config_models import DatabaseConfig
from ..models.enums import RowStatus
from ..models.payload import ImportRequest, TransactionPayload
from ..models.processing_result import ImportBatchResult, RowOutcome
from .base import SubmissionError

"""PostgreSQL import executor.

One submitted batch = one transaction: every row goes in through a single
``psycopg2.extras.execute_values`` INSERT ... RETURNING id, and the batch is
committed only when all of it succeeded. Any database error rolls the whole
batch back and surfaces as SubmissionError.

Connection parameters resolve in this order: DATABASE_URL / PGDSN, the
individual PG* variables, then the ``database`` section of the config.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "INSERT_COLUMNS",
    "batch_insert",
    "resolve_dsn",
    "PostgresImportExecutor",
]

logger = logging.getLogger(__name__)

INSERT_COLUMNS: tuple[str, ...] = (
    "account_id",
    "source_file",
    "source_row",
    "txn_date",
    "txn_type",
    "amount",
    "description",
    "payee",
    "category_id",
    "tags",
    "notes",
    "shared_group",
    "paid_by",
    "split_type",
    "participants",
)


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: str | None = None,
    page_size: int = 1000,
) -> InsertResult:
    """Perform a batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (trusted, comes from config)
    columns: insert columns
    rows: row value sequences, same order as ``columns``
    returning: column to return per inserted row (fetched across all pages)
    page_size: execute_values page size
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if returning:
        sql += f' RETURNING "{returning}"'

    try:
        returned = execute_values(cursor, sql, rows_list, page_size=page_size, fetch=bool(returning))
    except Exception as e:
        raise BatchInsertError(str(e)) from e

    return InsertResult(
        inserted_rows=len(rows_list),
        returned_values=list(returned) if returning else None,
    )


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _row_values(request: ImportRequest, t: TransactionPayload) -> list[Any]:
    return [
        request.account_id,
        request.file_name,
        t.row_number,
        t.date,
        t.type,
        t.amount,
        t.description,
        t.payee,
        t.category_id,
        t.tags,  # list -> text[]
        t.notes,
        t.shared_group,
        t.paid_by,
        t.split_type,
        t.participants,
    ]


class PostgresImportExecutor:
    """Insert a batch into a staging table, all-or-nothing."""

    def __init__(
        self,
        db_cfg: DatabaseConfig | None = None,
        *,
        table: str = "imported_transactions",
        page_size: int = 1000,
        connect: Any = None,
    ) -> None:
        self.db_cfg = db_cfg or DatabaseConfig()
        self.table = table
        self.page_size = page_size
        # Injected connection factory (tests); defaults to psycopg2.connect
        self._connect = connect

    def _open(self) -> Any:
        if self._connect is not None:
            return self._connect()
        return psycopg2.connect(resolve_dsn(self.db_cfg))

    def submit(self, request: ImportRequest) -> ImportBatchResult:
        rows = [_row_values(request, t) for t in request.transactions]
        try:
            conn = self._open()
        except Exception as e:
            raise SubmissionError(f"database connection failed: {e}") from e

        try:
            cur = conn.cursor()
            try:
                result = batch_insert(
                    cur,
                    self.table,
                    INSERT_COLUMNS,
                    rows,
                    returning="id",
                    page_size=self.page_size,
                )
                conn.commit()
            finally:
                cur.close()
        except Exception as e:
            conn.rollback()
            logger.debug("batch rolled back table=%s rows=%d", self.table, len(rows), exc_info=True)
            raise SubmissionError(f"database insert failed, batch rolled back: {e}") from e
        finally:
            conn.close()

        ids = [r[0] for r in (result.returned_values or [])]
        outcomes = [
            RowOutcome(
                row_number=t.row_number,
                status=RowStatus.SUCCESS,
                transaction_id=str(ids[i]) if i < len(ids) else None,
            )
            for i, t in enumerate(request.transactions)
        ]
        logger.debug("inserted table=%s rows=%d", self.table, result.inserted_rows)
        return ImportBatchResult(success_count=result.inserted_rows, failed_count=0, rows=outcomes)
