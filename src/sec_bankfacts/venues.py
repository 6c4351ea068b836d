"""Venue Directory: trading venue per ticker, from SEC's own ticker file.

The venue is looked up, never guessed from the shape of a ticker.  The
directory is built once per run from company_tickers_exchange.json and
only fills identities whose venue is missing or "N/A".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests

if TYPE_CHECKING:
    from sec_bankfacts.sec_client import SECClient

log = logging.getLogger(__name__)

# Raw venue label (upper-cased) → normalized venue
VENUE_ALIASES: dict[str, str] = {
    "NYSE": "NYSE",
    "NYSEARCA": "NYSE",
    "NYSE ARCA": "NYSE",
    "NYSEAMERICAN": "NYSE",
    "NYSE AMERICAN": "NYSE",
    "NYSE MKT": "NYSE",
    "NASDAQ": "NASDAQ",
    "NASDAQ/NGS": "NASDAQ",
    "NASDAQ/NMS": "NASDAQ",
    "NASDAQ/NGSM": "NASDAQ",
    "OTC": "OTC",
    "OTCBB": "OTC",
    "CBOE": "CBOE",
    "BATS": "BATS",
}

# Prefix families for tiers not listed above (e.g. "Nasdaq Capital Market", "OTCQX")
VENUE_PREFIXES: list[tuple[str, str]] = [
    ("NASDAQ", "NASDAQ"),
    ("OTC", "OTC"),
]

MISSING_VENUES = frozenset({"", "N/A", "NA", "NONE"})


def normalize_venue(raw: str | None) -> str | None:
    """Map a raw exchange label onto NYSE / NASDAQ / OTC / … ; unknown labels pass through."""
    if raw is None:
        return None
    upper = raw.strip().upper()
    if upper in MISSING_VENUES:
        return None
    if upper in VENUE_ALIASES:
        return VENUE_ALIASES[upper]
    for prefix, venue in VENUE_PREFIXES:
        if upper.startswith(prefix):
            return venue
    return raw.strip()


def is_missing_venue(venue: str | None) -> bool:
    return venue is None or venue.strip().upper() in MISSING_VENUES


class VenueDirectory:
    """ticker → normalized venue, with a CIK-level fallback."""

    def __init__(self, by_ticker: dict[str, str] | None = None, by_cik: dict[str, str] | None = None):
        self._by_ticker = by_ticker or {}
        self._by_cik = by_cik or {}

    @classmethod
    def from_rows(cls, rows: list[dict]) -> VenueDirectory:
        by_ticker: dict[str, str] = {}
        by_cik: dict[str, str] = {}
        for row in rows:
            venue = normalize_venue(row.get("exchange"))
            if venue is None:
                continue
            ticker = (row.get("ticker") or "").upper()
            if ticker:
                by_ticker.setdefault(ticker, venue)
            cik = row.get("cik")
            if cik:
                # First listed ticker per CIK is SEC's primary listing
                by_cik.setdefault(str(cik).zfill(10), venue)
        return cls(by_ticker, by_cik)

    @classmethod
    def load(cls, client: SECClient) -> VenueDirectory:
        """Fetch and build; an unreachable file yields an empty directory."""
        try:
            rows = client.get_tickers_exchange()
        except (requests.exceptions.RequestException, ValueError) as exc:
            log.warning("Venue lookup unavailable, keeping venues from identity list: %s", exc)
            return cls()
        return cls.from_rows(rows)

    def lookup(self, ticker: str | None, cik: str | None = None) -> str | None:
        if ticker:
            venue = self._by_ticker.get(ticker.upper())
            if venue:
                return venue
        if cik:
            return self._by_cik.get(str(cik).zfill(10))
        return None

    def __len__(self) -> int:
        return len(self._by_ticker)
