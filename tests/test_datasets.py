"""Tests for identity-list loading and dataset writers."""

import json
from datetime import datetime, timezone

from sec_bankfacts.datasets import load_identity_list, write_audit, write_records
from sec_bankfacts.models import EntityAudit, EntityRecord


def test_load_identity_list_wrapped_and_bare(tmp_path):
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"banks": [{"cik": 36104, "companyName": "US BANCORP", "ticker": "USB"}]}))
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps([{"cik": "36104", "name": "US BANCORP", "ticker": "USB", "otc_tier": None}]))

    for path in (wrapped, bare):
        rows = load_identity_list(path)
        assert len(rows) == 1
        assert rows[0].cik == "0000036104"
        assert rows[0].name == "US BANCORP"


def test_load_identity_list_skips_invalid_rows(tmp_path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps({"banks": [{"ticker": "NOCIK"}, {"cik": 1, "ticker": "OK"}]}))
    rows = load_identity_list(path)
    assert [r.ticker for r in rows] == ["OK"]


def test_write_records_replaces_file(tmp_path):
    (tmp_path / "banks.json").write_text("stale")
    records = [EntityRecord(cik="0000000001", ticker="AAA", total_assets=1.0)]

    path = write_records(records, tmp_path)

    data = json.loads(path.read_text())
    assert data[0]["ticker"] == "AAA"
    assert data[0]["totalAssets"] == 1.0
    assert [p.name for p in tmp_path.iterdir()] == ["banks.json"]


def test_write_audit(tmp_path):
    generated = datetime(2025, 6, 30, tzinfo=timezone.utc)
    audits = {"0000000001": EntityAudit(ticker="AAA", company_name="A Bank")}

    path = write_audit(audits, tmp_path, method="bulk", url="https://example.test", generated_at=generated)

    data = json.loads(path.read_text())
    assert data["metadata"]["method"] == "bulk"
    assert data["metadata"]["entity_count"] == 1
    assert data["metadata"]["generated_at"] == "2025-06-30T00:00:00+00:00"
    assert data["entities"]["0000000001"]["companyName"] == "A Bank"
