from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..executors import HttpImportExecutor, ImportExecutor, SubmissionError, build_executor
from ..extract.reader import CSV_SHEET_LABEL, ExtractionError
from ..extract.template import write_template
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import EXECUTOR_MODES, ImportConfig
from ..models.error_record import EXTRACTION_ERROR, FILE_LEVEL_ROW, SUBMISSION_ERROR, ErrorRecord
from ..models.processing_result import ImportBatchResult, ImportSummary
from ..services.session import ImportSession
from ..services.summary import render_summary_line

"""CLI entrypoint.

Commands:
- validate FILE: extract + validate, report invalid rows, SUMMARY line
- import FILE: validate, then submit the valid rows (all rows with --anyway)
- template FILE: write the CSV / XLSX import template
- history [ID]: list past imports (or one import's rows) from the backend

In http mode without catalogs in the config, catalogs are read from the
backend before validation.

Exit codes: 0 everything imported (or nothing to import), 2 partial failure
(invalid rows left out or rows rejected by the executor), 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True: .env の値で既存環境変数を上書き (API トークン / DB 接続情報を最優先)
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="txn-import", description="Bulk transaction import from CSV / Excel")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate a file without importing")
    v.add_argument("file", type=Path)

    i = sub.add_parser("import", help="Validate and import a file")
    i.add_argument("file", type=Path)
    i.add_argument("--anyway", action="store_true", help="Also submit rows that failed validation")
    i.add_argument("--executor", choices=EXECUTOR_MODES, default=None, help="Override executor.mode")

    t = sub.add_parser("template", help="Write the import template (.csv or .xlsx)")
    t.add_argument("file", type=Path)

    h = sub.add_parser("history", help="Show import history from the backend (http executor)")
    h.add_argument("id", nargs="?", default=None, help="Import history id; omit to list all")
    return p.parse_args(argv)


def _report_rows(logger: logging.Logger, session: ImportSession) -> None:
    for row in session.rows:
        if row.errors:
            logger.warning(f"row {row.row_number}: {'; '.join(row.errors)}")
        # 完全一致 (大文字小文字違いのみ) は提案として出さない
        if row.suggested_category and row.suggested_category.lower() != row.category.strip().lower():
            logger.info(f"row {row.row_number}: did you mean category '{row.suggested_category}'?")


def _open_session(logger: logging.Logger, cfg: ImportConfig, path: Path, buffer: ErrorLogBuffer) -> ImportSession | None:
    try:
        return ImportSession.from_file(
            path,
            cfg.catalogs,
            percentage_tolerance=cfg.validation.percentage_tolerance,
        )
    except ExtractionError as e:
        sheet = CSV_SHEET_LABEL if path.suffix.lower() == ".csv" else ""
        buffer.append(ErrorRecord.create(path.name, sheet, FILE_LEVEL_ROW, EXTRACTION_ERROR, str(e)))
        buffer.flush()
        logger.error(f"extraction: {e}")
        return None


def _summary(session: ImportSession, submitted: int, result: ImportBatchResult | None, started: float) -> None:
    valid, invalid = session.counts()
    summary = ImportSummary(
        file_name=session.file_name,
        total_rows=len(session),
        valid_rows=valid,
        invalid_rows=invalid,
        submitted_rows=submitted,
        success_count=result.success_count if result else 0,
        failed_count=result.failed_count if result else 0,
        elapsed_seconds=round(time.perf_counter() - started, 3),
    )
    # log_summary が "SUMMARY " を付けるので除去
    log_summary(render_summary_line(summary)[len("SUMMARY "):])


def _flush(logger: logging.Logger, buffer: ErrorLogBuffer) -> None:
    count = len(buffer)
    path = buffer.flush()
    if count:
        logger.info(f"{count} error record(s) written to {path}")


def _with_remote_catalogs(logger: logging.Logger, cfg: ImportConfig, executor: ImportExecutor) -> ImportConfig | None:
    """Fill catalogs from the backend when the config carries none (http only)."""
    if cfg.catalogs_configured or not isinstance(executor, HttpImportExecutor):
        return cfg
    try:
        catalogs = executor.fetch_catalogs()
    except SubmissionError as e:
        logger.error(f"catalogs: {e}")
        return None
    logger.info(
        f"Loaded catalogs from {executor.base_url}: {len(catalogs.accounts)} account(s), "
        f"{len(catalogs.categories)} category(ies), {len(catalogs.groups)} group(s)"
    )
    return replace(cfg, catalogs=catalogs, catalogs_configured=True)


def _cmd_validate(logger: logging.Logger, cfg: ImportConfig, args: argparse.Namespace) -> int:
    started = time.perf_counter()
    if cfg.executor.mode == "http":
        resolved = _with_remote_catalogs(logger, cfg, build_executor(cfg.executor))
        if resolved is None:
            return EXIT_FATAL
        cfg = resolved
    buffer = ErrorLogBuffer(cfg.error_log_dir)
    session = _open_session(logger, cfg, args.file, buffer)
    if session is None:
        return EXIT_FATAL
    _report_rows(logger, session)
    session.write_error_log(buffer)
    _flush(logger, buffer)
    _summary(session, 0, None, started)
    _, invalid = session.counts()
    return EXIT_PARTIAL_FAILURE if invalid else EXIT_SUCCESS_ALL


def _cmd_import(logger: logging.Logger, cfg: ImportConfig, args: argparse.Namespace) -> int:
    started = time.perf_counter()
    try:
        executor = build_executor(cfg.executor, args.executor)
    except ValueError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    resolved = _with_remote_catalogs(logger, cfg, executor)
    if resolved is None:
        return EXIT_FATAL
    cfg = resolved
    if not cfg.catalogs.has_account(cfg.account_id):
        logger.error(f"config: unknown account '{cfg.account_id}'")
        return EXIT_FATAL

    buffer = ErrorLogBuffer(cfg.error_log_dir)
    session = _open_session(logger, cfg, args.file, buffer)
    if session is None:
        return EXIT_FATAL
    _report_rows(logger, session)

    request = session.build_request(cfg.account_id, import_anyway=args.anyway)
    result: ImportBatchResult | None = None
    if len(request):
        try:
            result = session.submit(executor, cfg.account_id, import_anyway=args.anyway)
        except SubmissionError as e:
            buffer.append(
                ErrorRecord.create(session.file_name, session.sheet_name, FILE_LEVEL_ROW, SUBMISSION_ERROR, str(e))
            )
            session.write_error_log(buffer)
            _flush(logger, buffer)
            logger.error(f"submission: {e}")
            return EXIT_FATAL
        for row_number, message in sorted(session.server_failures().items()):
            logger.warning(f"row {row_number}: rejected by executor: {message}")
        logger.info(f"Imported {result.success_count} transaction(s), {result.failed_count} failed")
    else:
        logger.info("No transactions to import")

    session.write_error_log(buffer)
    _flush(logger, buffer)
    _summary(session, len(request), result, started)

    _, invalid = session.counts()
    left_out = invalid and not args.anyway
    if left_out or (result is not None and result.failed_count > 0):
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _cmd_template(logger: logging.Logger, cfg: ImportConfig | None, args: argparse.Namespace) -> int:
    categories = cfg.catalogs.category_names() if cfg else []
    groups = (cfg.catalogs.group_names() or []) if cfg else []
    try:
        path = write_template(args.file, categories, groups)
    except (ValueError, OSError) as e:
        logger.error(f"template: {e}")
        return EXIT_FATAL
    logger.info(f"Template written to {path}")
    return EXIT_SUCCESS_ALL


def _history_line(entry: dict[str, Any]) -> str:
    return (
        f"import {entry.get('id')}: {entry.get('fileName')} ({entry.get('fileType')}) "
        f"status={entry.get('status')} rows={entry.get('totalRows')} "
        f"success={entry.get('successCount')} failed={entry.get('failedCount')} at={entry.get('importedAt')}"
    )


def _cmd_history(logger: logging.Logger, cfg: ImportConfig, args: argparse.Namespace) -> int:
    if not cfg.executor.base_url:
        logger.error("config: executor.base_url is required for history")
        return EXIT_FATAL
    executor = HttpImportExecutor(cfg.executor.base_url, timeout=cfg.executor.timeout_seconds)
    try:
        if args.id is None:
            entries = executor.history()
            for entry in entries:
                logger.info(_history_line(entry))
            logger.info(f"{len(entries)} import(s)")
            return EXIT_SUCCESS_ALL
        entry = executor.history_entry(args.id)
    except SubmissionError as e:
        logger.error(f"history: {e}")
        return EXIT_FATAL
    logger.info(_history_line(entry))
    for item in entry.get("importedTransactions") or []:
        line = f"row {item.get('rowNumber')}: {item.get('status')}"
        if item.get("errorMessage"):
            line += f" {item['errorMessage']}"
        logger.info(line)
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] はそのまま使う (None のときだけ sys.argv を読む)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        if args.command == "template":
            # テンプレートは設定なしでも書ける (カテゴリ一覧が空になるだけ)
            logger.debug(f"config unavailable for template: {e}")
            return _cmd_template(logger, None, args)
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "validate":
        return _cmd_validate(logger, cfg, args)
    if args.command == "import":
        return _cmd_import(logger, cfg, args)
    if args.command == "history":
        return _cmd_history(logger, cfg, args)
    return _cmd_template(logger, cfg, args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
