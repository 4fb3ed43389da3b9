from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.catalog import CatalogEntry, Catalogs
from ..models.config_models import (
    DatabaseConfig,
    ExecutorConfig,
    ImportConfig,
    ValidationConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML config (config/import.yml by default)
- Validate it against the packaged config_schema.json
- Load catalogs inline or from ``catalog_file`` (relative to the config file)
- Apply defaults (dry-run executor, 30 s timeout, 0.01 tolerance, ./logs)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "load_catalogs",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _load_schema() -> dict[str, Any]:
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e


def _validate(data: Any, schema: dict[str, Any], where: str = "") -> None:
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        loc = "/".join(str(p) for p in e.absolute_path)
        prefix = f"{where}: " if where else ""
        suffix = f" (at {loc})" if loc else ""
        raise ConfigError(f"config validation failed: {prefix}{e.message}{suffix}") from e


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e


def _entries(raw: list[dict[str, Any]] | None) -> list[CatalogEntry]:
    return [CatalogEntry(name=str(e["name"]).strip(), id=str(e["id"])) for e in raw or []]


def _catalogs_from(raw: dict[str, Any]) -> Catalogs:
    return Catalogs.build(
        accounts=_entries(raw.get("accounts")),
        categories=_entries(raw.get("categories")),
        groups=_entries(raw["groups"]) if "groups" in raw else None,
    )


def load_catalogs(path: Path) -> Catalogs:
    """Load a standalone catalog file (same shape as the ``catalogs`` key)."""
    data = _read_yaml(path) or {}
    schema = _load_schema()
    # 参照解決のため definitions を引き継ぐ
    sub = {"definitions": schema["definitions"], **schema["definitions"]["catalogs"]}
    _validate(data, sub, where=str(path))
    return _catalogs_from(data)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    data = _read_yaml(path)
    if data is None:
        data = {}
    _validate(data, _load_schema())

    if "catalog_file" in data:
        catalog_path = Path(data["catalog_file"])
        if not catalog_path.is_absolute():
            catalog_path = path.parent / catalog_path
        catalogs = load_catalogs(catalog_path)
    else:
        catalogs = _catalogs_from(data.get("catalogs") or {})

    ex_raw = data.get("executor") or {}
    db_raw = ex_raw.get("database") or {}
    executor = ExecutorConfig(
        mode=ex_raw.get("mode", "dry-run"),
        base_url=ex_raw.get("base_url"),
        timeout_seconds=float(ex_raw.get("timeout_seconds", 30.0)),
        table=ex_raw.get("table", "imported_transactions"),
        page_size=int(ex_raw.get("page_size", 1000)),
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
    )
    if executor.mode == "http" and not executor.base_url:
        raise ConfigError("config validation failed: executor.base_url is required when mode is http")

    val_raw = data.get("validation") or {}
    tolerance = val_raw.get("percentage_tolerance")
    validation = ValidationConfig(
        percentage_tolerance=Decimal(str(tolerance)) if tolerance is not None else Decimal("0.01"),
    )

    return ImportConfig(
        account_id=str(data["account_id"]),
        executor=executor,
        catalogs=catalogs,
        catalogs_configured="catalog_file" in data or "catalogs" in data,
        validation=validation,
        error_log_dir=Path(data.get("error_log_dir", "./logs")),
    )
