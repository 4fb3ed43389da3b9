from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd
import requests

from txn_import.cli import main as cli_main
from txn_import.executors.base import SubmissionError


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    code = cli_main(["validate", "data/x.csv"])
    assert code == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_custom_config_path(temp_workdir: Path, sample_config_yaml: str, three_row_csv: Path, capsys):
    alt = temp_workdir / "alt.yml"
    alt.write_text(sample_config_yaml, encoding="utf-8")
    code = cli_main(["--config", str(alt), "validate", str(three_row_csv)])
    assert code == 2


def test_validate_reports_rows(write_config, three_row_csv: Path, capsys):
    code = cli_main(["validate", str(three_row_csv)])
    out = capsys.readouterr().out
    assert code == 2
    assert "WARN row 2: Amount is required" in out
    assert "WARN row 3: Percentages must sum to 100 (got 90)" in out
    assert "SUMMARY file=transactions.csv rows=3 valid=1 invalid=2 submitted=0 success=0 failed=0" in out


def test_validate_missing_file_logs_extraction_error(write_config, temp_workdir: Path, capsys):
    code = cli_main(["validate", "data/missing.csv"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR extraction:" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert '"error_type": "EXTRACTION_ERROR"' in logs[0].read_text(encoding="utf-8")


def test_import_dry_run(write_config, three_row_csv: Path, capsys):
    code = cli_main(["import", str(three_row_csv)])
    out = capsys.readouterr().out
    assert code == 2  # invalid rows were left out
    assert "INFO Imported 1 transaction(s), 0 failed" in out
    assert "submitted=1 success=1 failed=0" in out


def test_import_anyway_surfaces_server_failures(write_config, three_row_csv: Path, capsys):
    code = cli_main(["import", "--anyway", str(three_row_csv)])
    out = capsys.readouterr().out
    assert code == 2
    assert "WARN row 2: rejected by executor: amount must be a positive number" in out
    assert "submitted=3 success=2 failed=1" in out


def test_import_all_valid_exits_zero(write_config, temp_workdir: Path, capsys):
    f = temp_workdir / "data" / "ok.csv"
    pd.DataFrame(
        [["2024-01-15", "EXPENSE", "10", "Bus", "Transport"]],
        columns=["date", "type", "amount", "description", "category"],
    ).to_csv(f, index=False)
    assert cli_main(["import", str(f)]) == 0
    assert "success=1 failed=0" in capsys.readouterr().out


def test_submission_error_is_fatal(write_config, three_row_csv: Path, temp_workdir: Path, capsys):
    with patch("txn_import.executors.dry_run.DryRunImportExecutor.submit", side_effect=SubmissionError("down")):
        code = cli_main(["import", str(three_row_csv)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR submission: down" in out
    text = next((temp_workdir / "logs").glob("errors-*.log")).read_text(encoding="utf-8")
    assert '"error_type": "SUBMISSION_ERROR"' in text


def test_unknown_account_is_fatal(temp_workdir: Path, sample_config_yaml: str, three_row_csv: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text(
        sample_config_yaml.replace("account_id: acc-1", "account_id: acc-404"), encoding="utf-8"
    )
    assert cli_main(["import", str(three_row_csv)]) == 1
    assert "ERROR config: unknown account 'acc-404'" in capsys.readouterr().out


def test_template_without_config(temp_workdir: Path, capsys):
    assert cli_main(["template", "out/template.csv"]) == 0
    assert (temp_workdir / "out" / "template.csv").exists()


def test_template_bad_extension(write_config, capsys):
    assert cli_main(["template", "template.txt"]) == 1
    assert "ERROR template:" in capsys.readouterr().out


def test_debug_flag(write_config, three_row_csv: Path, capsys):
    cli_main(["--debug", "validate", str(three_row_csv)])
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_env_file_loaded(write_config, temp_workdir: Path, monkeypatch):
    monkeypatch.setenv("IMPORT_API_TOKEN", "old")
    (temp_workdir / ".env").write_text("IMPORT_API_TOKEN=from-dotenv\n", encoding="utf-8")
    with patch("txn_import.cli.__main__.load_dotenv") as ld:
        cli_main(["template", "t.csv"])
    ld.assert_called_once_with(dotenv_path=Path(".env"), override=True)


HTTP_CONFIG = """account_id: acc-1
executor:
  mode: http
  base_url: https://api.example.com
"""

BACKEND_CATALOGS = {
    "https://api.example.com/accounts": [{"name": "Checking", "id": "acc-1"}],
    "https://api.example.com/categories": {"data": [{"name": "Transport", "id": "c1"}, {"name": "Food", "id": "c2"}]},
    "https://api.example.com/groups": {"data": [{"name": "Family", "id": "g1"}]},
}


def _json_response(body) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = body
    return resp


def _http_workdir(temp_workdir: Path) -> Path:
    (temp_workdir / "config" / "import.yml").write_text(HTTP_CONFIG, encoding="utf-8")
    f = temp_workdir / "data" / "remote.csv"
    f.write_text(
        "date,type,amount,description,category,sharedGroup,paidBy,splitType,participants\n"
        "2024-01-15,EXPENSE,10,Bus,Transprt,,,,\n"
        '2024-01-16,EXPENSE,30,Lunch,Food,Office,a@x.com,EQUAL,"a@x.com,b@x.com"\n',
        encoding="utf-8",
    )
    return f


def test_http_mode_without_catalogs_reads_them_from_backend(temp_workdir: Path, capsys):
    f = _http_workdir(temp_workdir)
    with patch(
        "txn_import.executors.http.requests.request",
        side_effect=lambda method, url, **kw: _json_response(BACKEND_CATALOGS[url]),
    ) as req:
        code = cli_main(["validate", str(f)])
    out = capsys.readouterr().out
    assert code == 2
    assert [c.args[1] for c in req.call_args_list] == list(BACKEND_CATALOGS)
    assert "INFO Loaded catalogs from https://api.example.com: 1 account(s), 2 category(ies), 1 group(s)" in out
    assert "INFO row 1: did you mean category 'Transport'?" in out
    assert "WARN row 2: Unknown group 'Office'" in out


def test_http_import_checks_account_against_backend_catalogs(temp_workdir: Path, capsys):
    f = _http_workdir(temp_workdir)
    catalogs = dict(BACKEND_CATALOGS)
    catalogs["https://api.example.com/accounts"] = [{"name": "Savings", "id": "acc-2"}]
    with patch(
        "txn_import.executors.http.requests.request",
        side_effect=lambda method, url, **kw: _json_response(catalogs[url]),
    ):
        code = cli_main(["import", str(f)])
    assert code == 1
    assert "ERROR config: unknown account 'acc-1'" in capsys.readouterr().out


def test_http_catalog_fetch_failure_is_fatal(temp_workdir: Path, capsys):
    f = _http_workdir(temp_workdir)
    with patch("txn_import.executors.http.requests.request", side_effect=requests.ConnectionError("refused")):
        code = cli_main(["validate", str(f)])
    assert code == 1
    assert "ERROR catalogs: GET /accounts failed: refused" in capsys.readouterr().out


def test_history_lists_imports(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text(HTTP_CONFIG, encoding="utf-8")
    entry = {
        "id": "h1",
        "fileName": "jan.csv",
        "fileType": "CSV",
        "status": "COMPLETED",
        "totalRows": 3,
        "successCount": 2,
        "failedCount": 1,
        "importedAt": "2024-02-01T10:00:00Z",
    }
    with patch("txn_import.executors.http.requests.request", return_value=_json_response({"data": [entry]})) as req:
        code = cli_main(["history"])
    out = capsys.readouterr().out
    assert code == 0
    assert req.call_args.args == ("GET", "https://api.example.com/import/history")
    assert "INFO import h1: jan.csv (CSV) status=COMPLETED rows=3 success=2 failed=1 at=2024-02-01T10:00:00Z" in out
    assert "INFO 1 import(s)" in out


def test_history_entry_shows_row_outcomes(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text(HTTP_CONFIG, encoding="utf-8")
    body = {
        "data": {
            "id": "h1",
            "fileName": "jan.csv",
            "status": "COMPLETED",
            "importedTransactions": [
                {"rowNumber": 1, "status": "SUCCESS"},
                {"rowNumber": 2, "status": "FAILED", "errorMessage": "Category not found"},
            ],
        }
    }
    with patch("txn_import.executors.http.requests.request", return_value=_json_response(body)) as req:
        code = cli_main(["history", "h1"])
    out = capsys.readouterr().out
    assert code == 0
    assert req.call_args.args == ("GET", "https://api.example.com/import/history/h1")
    assert "INFO row 1: SUCCESS" in out
    assert "INFO row 2: FAILED Category not found" in out


def test_history_needs_base_url(write_config, capsys):
    assert cli_main(["history"]) == 1
    assert "ERROR config: executor.base_url is required for history" in capsys.readouterr().out
