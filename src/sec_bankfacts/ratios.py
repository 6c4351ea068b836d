"""Ratio Calculator: bank ratios from resolved balances, averages and TTM flows.

Every ratio null-propagates: a missing input or a zero denominator gives
None, never 0 and never an exception.  Percentages are expressed × 100.

    common_equity            = total_equity − preferred_stock
    tangible_common_equity   = common_equity − goodwill − intangibles
    tangible_assets          = total_assets − goodwill − intangibles
    bvps / tbvps             = (tangible) common equity / shares outstanding
    roe                      = TTM net income / average equity × 100
    roaa                     = TTM net income / average assets × 100
    rotce                    = TTM net income / tangible common equity × 100
    total_revenue            = TTM net interest income + TTM noninterest income
    efficiency_ratio         = TTM noninterest expense / total_revenue × 100   (revenue > 0)
    deposits/equity/loans_to_assets, loans_to_deposits, tce_to_ta            × 100
    graham_num               = √(22.5 × EPS × BVPS)                           (both > 0)
    dividend_payout_ratio    = TTM DPS / TTM EPS × 100                        (EPS > 0)
"""

from __future__ import annotations

import math

GRAHAM_MULTIPLIER = 22.5

PER_SHARE_DECIMALS = 4
RETURN_DECIMALS = 4
RATIO_DECIMALS = 2


def _div(a: float | None, b: float | None) -> float | None:
    """Safe division: returns None if either operand is None or divisor is zero."""
    if a is None or b is None or b == 0:
        return None
    return a / b


def _pct(a: float | None, b: float | None) -> float | None:
    q = _div(a, b)
    return None if q is None else q * 100


def _round(v: float | None, digits: int) -> float | None:
    return None if v is None else round(v, digits)


def net_income_to_common(
    direct: float | None,
    net_income: float | None,
    preferred_dividends: float | None,
) -> float | None:
    """Direct tag if reported, else net income less preferred dividends.

    A derived value larger than net income (negative preferred dividends)
    is treated as bad data and dropped.
    """
    if direct is not None:
        return direct
    if net_income is None:
        return None
    derived = net_income - (preferred_dividends or 0.0)
    if derived > net_income:
        return None
    return derived


def compute_ratios(
    b: dict[str, float | None],
    a: dict[str, float | None],
    t: dict[str, float | None],
) -> dict[str, float | None]:
    """Compute derived figures from balances ``b``, averages ``a`` and TTM flows ``t``.

    Keys of the returned dict are EntityRecord field names.
    """
    total_assets = b.get("total_assets")
    total_equity = b.get("total_equity")
    deposits = b.get("total_deposits")
    loans = b.get("loans")
    shares = b.get("shares_outstanding")
    preferred = b.get("preferred_stock") or 0.0
    goodwill = b.get("goodwill") or 0.0
    intangibles = b.get("intangibles") or 0.0

    avg_assets = a.get("avg_assets")
    avg_equity = a.get("avg_equity")

    ni = t.get("net_income")
    nii = t.get("net_interest_income")
    nonint_income = t.get("noninterest_income")
    nonint_expense = t.get("noninterest_expense")
    eps = t.get("eps")
    dps = t.get("dividends_per_share")

    common_equity = None if total_equity is None else total_equity - preferred
    tce = None if common_equity is None else common_equity - goodwill - intangibles
    tangible_assets = None if total_assets is None else total_assets - goodwill - intangibles

    bvps = _div(common_equity, shares)
    tbvps = _div(tce, shares)

    total_revenue = None
    if nii is not None or nonint_income is not None:
        total_revenue = (nii or 0.0) + (nonint_income or 0.0)

    efficiency = None
    if total_revenue is not None and total_revenue > 0:
        efficiency = _pct(nonint_expense, total_revenue)

    graham = None
    if eps is not None and bvps is not None and eps > 0 and bvps > 0:
        graham = math.sqrt(GRAHAM_MULTIPLIER * eps * bvps)

    payout = None
    if eps is not None and eps > 0:
        payout = _pct(dps, eps)

    return {
        "common_equity": common_equity,
        "tangible_common_equity": tce,
        "tangible_assets": tangible_assets,
        "bvps": _round(bvps, PER_SHARE_DECIMALS),
        "tbvps": _round(tbvps, PER_SHARE_DECIMALS),
        "roe": _round(_pct(ni, avg_equity), RETURN_DECIMALS),
        "roaa": _round(_pct(ni, avg_assets), RETURN_DECIMALS),
        "rotce": _round(_pct(ni, tce), RETURN_DECIMALS),
        "total_revenue": total_revenue,
        "efficiency_ratio": _round(efficiency, RATIO_DECIMALS),
        "deposits_to_assets": _round(_pct(deposits, total_assets), RATIO_DECIMALS),
        "equity_to_assets": _round(_pct(total_equity, total_assets), RATIO_DECIMALS),
        "loans_to_assets": _round(_pct(loans, total_assets), RATIO_DECIMALS),
        "loans_to_deposits": _round(_pct(loans, deposits), RATIO_DECIMALS),
        "tce_to_ta": _round(_pct(tce, tangible_assets), RATIO_DECIMALS),
        "graham_num": _round(graham, PER_SHARE_DECIMALS),
        "dividend_payout_ratio": _round(payout, RATIO_DECIMALS),
    }
