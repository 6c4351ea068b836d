"""Identity Resolver: one entity per CIK, one display symbol per entity.

The identity list carries one row per (CIK, ticker), so a bank with
preferred share classes shows up several times.  Rows are grouped by
CIK and the common-share ticker is chosen for display.
"""

from __future__ import annotations

import logging
import re

from sec_bankfacts.models import EntityIdentity, IdentityRow
from sec_bankfacts.venues import VenueDirectory, is_missing_venue

log = logging.getLogger(__name__)

# Hyphenated preferred-class suffix only: "BAC-PB", "C-PN", "XYZ-P"
_PREFERRED_RE = re.compile(r"-P[A-Z]?$", re.IGNORECASE)


def is_preferred_symbol(symbol: str | None) -> bool:
    return bool(symbol) and _PREFERRED_RE.search(symbol) is not None


def select_display_symbol(symbols: list[str]) -> str | None:
    """Shortest non-preferred symbol; shortest overall if all are preferred.

    Ties break alphabetically, so the result does not depend on input order.
    """
    symbols = [s for s in symbols if s]
    if not symbols:
        return None
    common = [s for s in symbols if not is_preferred_symbol(s)]
    candidates = common or symbols
    return min(candidates, key=lambda s: (len(s), s))


def resolve_identities(
    rows: list[IdentityRow],
    venues: VenueDirectory | None = None,
) -> list[EntityIdentity]:
    """Group identity rows by CIK into EntityIdentity objects (first-seen order)."""
    groups: dict[str, list[IdentityRow]] = {}
    for row in rows:
        groups.setdefault(row.cik, []).append(row)

    identities: list[EntityIdentity] = []
    filled = 0
    for cik, group in groups.items():
        tickers: list[str] = []
        for row in group:
            symbol = (row.ticker or "").strip()
            if symbol and symbol not in tickers:
                tickers.append(symbol)

        display = select_display_symbol(tickers)
        chosen = next((r for r in group if (r.ticker or "").strip() == display), group[0])
        name = next((r.name for r in group if r.name), None)
        sic = next((r.sic for r in group if r.sic), None)
        sic_description = next((r.sic_description for r in group if r.sic_description), None)

        venue = None if is_missing_venue(chosen.exchange) else chosen.exchange
        if venue is None and venues is not None:
            venue = venues.lookup(display, cik)
            if venue is not None:
                filled += 1

        identities.append(EntityIdentity(
            cik=cik,
            ticker=display,
            tickers=sorted(tickers),
            name=name,
            exchange=venue,
            otc_tier=chosen.otc_tier,
            sic=sic,
            sic_description=sic_description,
        ))

    if filled:
        log.info("Filled %d missing venues from SEC ticker directory", filled)
    log.info("Resolved %d identity rows into %d entities", len(rows), len(identities))
    return identities
