# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from txn_import.logging.init import reset_logging
from txn_import.models.catalog import CatalogEntry, Catalogs

CSV_HEADER = "date,type,amount,description,payee,category,tags,notes,sharedGroup,paidBy,splitType,participants\n"


@pytest.fixture(autouse=True)
def _fresh_logging():
    # capsys は sys.stdout を差し替えるのでハンドラを毎回作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """account_id: acc-1
executor:
  mode: dry-run
catalogs:
  accounts:
    - {name: Checking, id: acc-1}
  categories:
    - {name: Transport, id: cat-transport}
    - {name: Food, id: cat-food}
    - {name: Groceries, id: cat-groceries}
    - {name: Salary, id: cat-salary}
    - {name: Housing, id: cat-housing}
  groups:
    - {name: Family, id: grp-family}
    - {name: Friends, id: grp-friends}
    - {name: Roommates, id: grp-roommates}
validation:
  percentage_tolerance: 0.01
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def catalogs() -> Catalogs:
    return Catalogs.build(
        accounts=[CatalogEntry("Checking", "acc-1")],
        categories=[
            CatalogEntry("Transport", "cat-transport"),
            CatalogEntry("Food", "cat-food"),
            CatalogEntry("Groceries", "cat-groceries"),
            CatalogEntry("Salary", "cat-salary"),
            CatalogEntry("Housing", "cat-housing"),
        ],
        groups=[
            CatalogEntry("Family", "grp-family"),
            CatalogEntry("Friends", "grp-friends"),
            CatalogEntry("Roommates", "grp-roommates"),
        ],
    )


@pytest.fixture()
def three_row_csv(temp_workdir: Path) -> Path:
    """One valid row, one missing its amount, one with a bad percentage split."""
    f = temp_workdir / "data" / "transactions.csv"
    f.write_text(
        CSV_HEADER
        + "2024-01-15,EXPENSE,50000,Weekly groceries,Supermarket XYZ,Grocerys,grocery,,,,,\n"
        + "15/01/2024,INCOME,,Monthly salary,Company ABC,Salary,work,,,,,\n"
        + "2024-01-18,EXPENSE,90000,Pizza night,Pizza Hut,Food,,,Friends,ana@example.com,PERCENTAGE,"
        + '"ana@example.com:50,ben@example.com:40"\n',
        encoding="utf-8",
    )
    return f
