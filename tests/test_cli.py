"""Tests for the command-line surface and its exit codes."""

import json
from unittest.mock import MagicMock, patch

import pytest

from sec_bankfacts import config
from sec_bankfacts.cli import main

UA = "Example Research admin@example.com"


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "_config", None)
    monkeypatch.chdir(tmp_path)                       # no stray .env
    monkeypatch.setenv("SEC_USER_AGENT", UA)
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    # Fixture data is dated 2025-03-31; keep it fresh whatever today is
    monkeypatch.setenv("STALENESS_DAYS", "100000")


@pytest.fixture
def identity_list(tmp_path):
    path = tmp_path / "bank-list.json"
    path.write_text(json.dumps({"banks": [
        {"cik": "1234567", "companyName": "FIRST EXAMPLE BANCORP", "ticker": "FEB-PA", "exchange": "NASDAQ"},
        {"cik": "1234567", "companyName": "FIRST EXAMPLE BANCORP", "ticker": "FEB", "exchange": "NASDAQ"},
    ]}))
    return path


def _mock_client(document):
    client = MagicMock()
    client.get_company_facts.return_value = document
    client.get_tickers_exchange.return_value = []
    return client


def test_help_exits_zero(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0
    assert "--skip-download" in capsys.readouterr().out


def test_missing_user_agent(monkeypatch, identity_list):
    monkeypatch.setenv("SEC_USER_AGENT", "  ")
    assert main(["--identities", str(identity_list)]) == 1


def test_missing_identity_list(tmp_path):
    assert main(["--identities", str(tmp_path / "nope.json")]) == 1


def test_empty_identity_list(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"banks": []}))
    assert main(["--identities", str(path)]) == 1


def test_skip_download_without_bulk_data(identity_list):
    with patch("sec_bankfacts.cli.SECClient", return_value=_mock_client(None)):
        assert main(["--skip-download", "--identities", str(identity_list)]) == 1


def test_successful_run_writes_datasets(tmp_path, identity_list, bank_document):
    out = tmp_path / "out"
    client = _mock_client(bank_document)
    with patch("sec_bankfacts.cli.SECClient", return_value=client):
        code = main(["--identities", str(identity_list), "--output-dir", str(out)])

    assert code == 0
    client.get_company_facts.assert_called_once_with("0001234567")

    records = json.loads((out / "banks.json").read_text())
    assert len(records) == 1
    assert records[0]["ticker"] == "FEB"
    assert records[0]["bvps"] == 10.0

    audit = json.loads((out / "sec-raw-data.json").read_text())
    assert audit["metadata"]["method"] == "api"
    assert audit["metadata"]["entity_count"] == 1
    assert "0001234567" in audit["entities"]


def test_no_records_exits_one_and_keeps_old_output(tmp_path, identity_list):
    out = tmp_path / "out"
    out.mkdir()
    (out / "banks.json").write_text("[\"previous\"]")

    with patch("sec_bankfacts.cli.SECClient", return_value=_mock_client(None)):
        code = main(["--identities", str(identity_list), "--output-dir", str(out), "--no-venue-lookup"])

    assert code == 1
    assert json.loads((out / "banks.json").read_text()) == ["previous"]
