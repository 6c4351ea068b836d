"""Tests for the SEC HTTP client (HTTP mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from sec_bankfacts.errors import FactsFetchError, FactsParseError
from sec_bankfacts.sec_client import SECClient, pad_cik

UA = "Example Research admin@example.com"


def _response(status=200, payload=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


def _client(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return SECClient(UA, min_interval=0, retries=2, session=session), session


def test_pad_cik():
    assert pad_cik(36104) == "0000036104"
    assert pad_cik(" 36104 ") == "0000036104"


def test_company_facts_ok():
    client, session = _client(_response(200, {"cik": 36104, "facts": {}}))

    assert client.get_company_facts(36104) == {"cik": 36104, "facts": {}}

    url = session.get.call_args.args[0]
    assert url.endswith("/api/xbrl/companyfacts/CIK0000036104.json")
    assert session.get.call_args.kwargs["headers"]["User-Agent"] == UA


def test_company_facts_404_is_none():
    client, _ = _client(_response(404))
    assert client.get_company_facts("1") is None


@patch("sec_bankfacts.sec_client.time.sleep")
def test_company_facts_retries_then_succeeds(_sleep):
    client, session = _client(_response(503), _response(429), _response(200, {"facts": {}}))
    assert client.get_company_facts("1") == {"facts": {}}
    assert session.get.call_count == 3


@patch("sec_bankfacts.sec_client.time.sleep")
def test_company_facts_5xx_after_retries_raises(_sleep):
    client, session = _client(_response(500), _response(502), _response(503))
    with pytest.raises(FactsFetchError) as exc_info:
        client.get_company_facts("1")
    assert exc_info.value.cik == "0000000001"
    assert session.get.call_count == 3


@patch("sec_bankfacts.sec_client.time.sleep")
def test_company_facts_connection_error_raises(_sleep):
    err = requests.exceptions.ConnectionError("reset")
    client, _ = _client(err, err, err)
    with pytest.raises(FactsFetchError):
        client.get_company_facts("1")


def test_company_facts_bad_json():
    client, _ = _client(_response(200, json_error=True))
    with pytest.raises(FactsParseError):
        client.get_company_facts("1")


def test_tickers_exchange_rows():
    payload = {
        "fields": ["cik", "name", "ticker", "exchange"],
        "data": [[36104, "US BANCORP", "usb", "NYSE"], [70858, "BANK OF AMERICA CORP", "BAC-PB", None]],
    }
    client, _ = _client(_response(200, payload))

    rows = client.get_tickers_exchange()

    assert rows[0] == {"cik": "0000036104", "name": "US BANCORP", "ticker": "USB", "exchange": "NYSE"}
    assert rows[1]["exchange"] is None


def test_download_bulk_archive(tmp_path):
    resp = _response(200)
    resp.iter_content.return_value = [b"PK", b"\x03\x04"]
    resp.__enter__.return_value = resp
    client, session = _client(resp)

    dest = client.download_bulk_archive(tmp_path / "cache" / "companyfacts.zip")

    assert dest.read_bytes() == b"PK\x03\x04"
    assert session.get.call_args.kwargs["stream"] is True


@pytest.mark.integration
def test_live_company_facts():
    from sec_bankfacts.config import get_config

    client = SECClient(get_config().require_user_agent())
    facts = client.get_company_facts(36104)
    assert facts["entityName"]
    assert "us-gaap" in facts["facts"]
