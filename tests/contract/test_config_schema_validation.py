from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from txn_import.config.loader import SCHEMA_PATH

"""Config schema contract test (packaged config_schema.json)."""


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_sample_config_is_valid(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_full_config_is_valid(schema):
    config = {
        "account_id": "acc-1",
        "executor": {
            "mode": "postgres",
            "table": "finance.imported_transactions",
            "page_size": 500,
            "database": {"host": "localhost", "port": 5432, "user": "app", "password": "secret", "database": "fin"},
        },
        "catalog_file": "./catalogs.yml",
        "validation": {"percentage_tolerance": 0.05},
        "error_log_dir": "./logs",
    }
    jsonschema.validate(config, schema)


def test_missing_account_id(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"executor": {"mode": "dry-run"}}, schema)


@pytest.mark.parametrize("table", ["drop table x;", "1abc", "a.b.c"])
def test_table_name_is_an_identifier(schema, table):
    with pytest.raises(ValidationError):
        jsonschema.validate({"account_id": "a", "executor": {"table": table}}, schema)


def test_catalog_entry_needs_name_and_id(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"account_id": "a", "catalogs": {"groups": [{"name": "Family"}]}}, schema)
