"""Direct SEC EDGAR API client.

Uses only public SEC endpoints (no API key needed, just User-Agent header):
  - company_tickers_exchange.json        ticker → CIK → exchange directory
  - api/xbrl/companyfacts/CIK{cik}.json  ALL XBRL facts for a company
  - Archives/edgar/daily-index/xbrl/companyfacts.zip  bulk companyfacts

Rate limited to one request per ``min_interval`` seconds (default 0.1s,
i.e. SEC's 10 req/sec fair-access ceiling).  Thread-safe.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

import requests

from sec_bankfacts.errors import FactsFetchError, FactsParseError

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════════════

SEC_BASE = "https://www.sec.gov"
DATA_BASE = "https://data.sec.gov"
TICKERS_EXCHANGE_URL = f"{SEC_BASE}/files/company_tickers_exchange.json"
COMPANY_FACTS_URL = f"{DATA_BASE}/api/xbrl/companyfacts/CIK{{cik}}.json"
BULK_COMPANY_FACTS_URL = f"{SEC_BASE}/Archives/edgar/daily-index/xbrl/companyfacts.zip"

DEFAULT_MIN_INTERVAL = 0.1
_RETRYABLE_STATUS = (500, 502, 503, 504)
_DOWNLOAD_CHUNK = 1 << 20


def pad_cik(cik: str | int) -> str:
    """Zero-pad a CIK to the 10-digit form used in SEC file names."""
    return str(cik).strip().zfill(10)


# ═══════════════════════════════════════════════════════════════════════════
#  SEC EDGAR Client
# ═══════════════════════════════════════════════════════════════════════════

class SECClient:
    """HTTP client for the SEC EDGAR public APIs.

    Thread-safe with rate limiting; one instance is shared by all workers
    of a run so the inter-request interval holds across threads.
    """

    def __init__(
        self,
        user_agent: str,
        *,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        timeout: int = 60,
        retries: int = 2,
        session: requests.Session | None = None,
    ):
        self.user_agent = user_agent
        self.headers = {
            "User-Agent": user_agent,
            "Accept-Encoding": "gzip, deflate",
            "Accept": "application/json",
        }
        self.min_interval = min_interval
        self.timeout = timeout
        self.retries = retries
        self._session = session or requests.Session()
        # Rate limiter state
        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()

    # ── Rate-limited HTTP request ─────────────────────────────────────

    def _wait_for_slot(self) -> None:
        with self._rate_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_request_time = time.monotonic()

    def _request(self, url: str, *, stream: bool = False, headers: dict | None = None) -> requests.Response:
        """Make a GET request with rate limiting and automatic retry.

        Retries on 429 (rate-limit), 500/502/503/504 (server errors),
        connection errors and timeouts.  Other statuses raise immediately
        via ``raise_for_status``.
        """
        last_exc: Exception | None = None
        for attempt in range(1 + self.retries):
            self._wait_for_slot()
            try:
                resp = self._session.get(
                    url,
                    headers=headers or self.headers,
                    timeout=self.timeout,
                    stream=stream,
                )
                if resp.status_code == 429 and attempt < self.retries:
                    wait = min(2 ** attempt, 10)
                    log.warning("SEC rate-limited (429), retrying in %ds…", wait)
                    time.sleep(wait)
                    continue
                if resp.status_code in _RETRYABLE_STATUS and attempt < self.retries:
                    wait = min(2 ** attempt, 8)
                    log.warning("SEC %d error, retrying in %ds…", resp.status_code, wait)
                    time.sleep(wait)
                    continue
                resp.raise_for_status()
                return resp
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
                last_exc = exc
                if attempt < self.retries:
                    wait = min(2 ** attempt, 8)
                    log.warning("Request to %s failed, retrying in %ds: %s", url, wait, exc)
                    time.sleep(wait)
                    continue
                raise

        if last_exc:
            raise last_exc
        raise requests.exceptions.ConnectionError(f"Failed after {self.retries + 1} attempts: {url}")

    # ── XBRL Company Facts ────────────────────────────────────────────

    def get_company_facts(self, cik: str | int) -> dict | None:
        """Fetch ALL XBRL facts for a company.

        Returns None when SEC has no companyfacts for the CIK (404): the
        company may not file in XBRL.  Any other failure raises
        FactsFetchError; an undecodable body raises FactsParseError.

        Structure: {
            "cik": 36104,
            "entityName": "US BANCORP",
            "facts": {
                "dei": {"EntityCommonStockSharesOutstanding": {...}},
                "us-gaap": {
                    "Assets": {
                        "label": "Assets",
                        "units": {
                            "USD": [
                                {"end": "2024-12-31", "val": 678318000000,
                                 "accn": "0000036104-25-000012", "fy": 2024,
                                 "fp": "FY", "form": "10-K", "filed": "2025-02-21"},
                                ...
                            ]
                        }
                    },
                    ...
                }
            }
        }
        """
        cik_padded = pad_cik(cik)
        url = COMPANY_FACTS_URL.format(cik=cik_padded)
        log.debug("Fetching XBRL companyfacts for CIK %s", cik_padded)
        try:
            resp = self._request(url)
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 0
            if status == 404:
                log.info("No XBRL companyfacts for CIK %s (404)", cik_padded)
                return None
            raise FactsFetchError(cik_padded, f"HTTP {status} from {url}") from exc
        except requests.exceptions.RequestException as exc:
            raise FactsFetchError(cik_padded, f"network error: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise FactsParseError(cik_padded, f"invalid JSON: {exc}") from exc

    # ── Ticker / exchange directory ──────────────────────────────────

    def get_tickers_exchange(self) -> list[dict]:
        """Load SEC company_tickers_exchange.json as a list of row dicts.

        Format on the wire:
            {"fields": ["cik", "name", "ticker", "exchange"],
             "data": [[cik, name, ticker, exchange], ...]}
        Returns [{"cik": "0000036104", "name": ..., "ticker": ..., "exchange": ...}, ...]
        """
        log.info("Fetching SEC company_tickers_exchange.json")
        raw = self._request(TICKERS_EXCHANGE_URL).json()
        fields = raw.get("fields", [])
        cik_idx = fields.index("cik") if "cik" in fields else 0
        name_idx = fields.index("name") if "name" in fields else 1
        ticker_idx = fields.index("ticker") if "ticker" in fields else 2
        exchange_idx = fields.index("exchange") if "exchange" in fields else 3

        rows: list[dict] = []
        for row in raw.get("data", []):
            if len(row) < 3:
                continue
            exchange = row[exchange_idx] if exchange_idx < len(row) else None
            rows.append({
                "cik": pad_cik(row[cik_idx]),
                "name": str(row[name_idx]),
                "ticker": str(row[ticker_idx] or "").upper(),
                "exchange": str(exchange) if exchange else None,
            })
        log.info("Loaded %d tickers from company_tickers_exchange.json", len(rows))
        return rows

    # ── Bulk archive ──────────────────────────────────────────────────

    def download_bulk_archive(self, dest: Path) -> Path:
        """Stream companyfacts.zip to ``dest`` (several GB; takes minutes)."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_suffix(dest.suffix + ".part")
        log.info("Downloading %s → %s", BULK_COMPANY_FACTS_URL, dest)
        headers = {"User-Agent": self.user_agent, "Accept-Encoding": "identity"}
        with self._request(BULK_COMPANY_FACTS_URL, stream=True, headers=headers) as resp:
            with open(partial, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=_DOWNLOAD_CHUNK):
                    fh.write(chunk)
        partial.replace(dest)
        log.info("Download complete: %s", dest)
        return dest
