"""Tests for ratio computation and null propagation."""

import math

from sec_bankfacts.ratios import _div, compute_ratios, net_income_to_common

BALANCES = {
    "total_assets": 2_500_000_000.0,
    "total_equity": 250_000_000.0,
    "total_deposits": 2_000_000_000.0,
    "loans": 1_500_000_000.0,
    "shares_outstanding": 25_000_000.0,
    "preferred_stock": 0.0,
    "goodwill": 0.0,
    "intangibles": 0.0,
}
AVERAGES = {"avg_assets": 2_400_000_000.0, "avg_equity": 240_000_000.0}
FLOWS = {
    "net_income": 28_000_000.0,
    "net_interest_income": 80_000_000.0,
    "noninterest_income": 20_000_000.0,
    "noninterest_expense": 60_000_000.0,
    "eps": 1.12,
    "dividends_per_share": 0.56,
}


def test_div_safe():
    assert _div(1, 0) is None
    assert _div(None, 2) is None
    assert _div(1, None) is None
    assert _div(6, 3) == 2


def test_core_bank_ratios():
    r = compute_ratios(BALANCES, AVERAGES, FLOWS)
    assert r["common_equity"] == 250_000_000.0
    assert r["bvps"] == 10.0
    assert r["roe"] == round(28 / 240 * 100, 4)
    assert r["roaa"] == round(28 / 2400 * 100, 4)
    assert r["total_revenue"] == 100_000_000.0
    assert r["efficiency_ratio"] == 60.0
    assert r["deposits_to_assets"] == 80.0
    assert r["equity_to_assets"] == 10.0
    assert r["loans_to_assets"] == 60.0
    assert r["loans_to_deposits"] == 75.0
    assert r["dividend_payout_ratio"] == 50.0
    assert r["graham_num"] == round(math.sqrt(22.5 * 1.12 * 10.0), 4)


def test_tangible_ratios():
    b = dict(BALANCES, goodwill=40_000_000.0, intangibles=10_000_000.0, preferred_stock=50_000_000.0)
    r = compute_ratios(b, AVERAGES, FLOWS)
    assert r["common_equity"] == 200_000_000.0
    assert r["tangible_common_equity"] == 150_000_000.0
    assert r["tangible_assets"] == 2_450_000_000.0
    assert r["tbvps"] == 6.0
    assert r["rotce"] == round(28 / 150 * 100, 4)
    assert r["tce_to_ta"] == round(150 / 2450 * 100, 2)


def test_missing_inputs_give_none():
    r = compute_ratios({}, {}, {})
    assert all(v is None for v in r.values())


def test_zero_denominators_give_none():
    b = dict(BALANCES, shares_outstanding=0.0, total_assets=0.0)
    r = compute_ratios(b, {"avg_assets": 0.0, "avg_equity": None}, FLOWS)
    assert r["bvps"] is None
    assert r["roaa"] is None
    assert r["roe"] is None
    assert r["equity_to_assets"] is None


def test_efficiency_requires_positive_revenue():
    flows = dict(FLOWS, net_interest_income=-30_000_000.0, noninterest_income=10_000_000.0)
    assert compute_ratios(BALANCES, AVERAGES, flows)["efficiency_ratio"] is None


def test_graham_and_payout_require_positive_eps():
    r = compute_ratios(BALANCES, AVERAGES, dict(FLOWS, eps=-0.5))
    assert r["graham_num"] is None
    assert r["dividend_payout_ratio"] is None


def test_net_income_to_common():
    assert net_income_to_common(90.0, 100.0, 5.0) == 90.0
    assert net_income_to_common(None, 100.0, 5.0) == 95.0
    assert net_income_to_common(None, 100.0, None) == 100.0
    assert net_income_to_common(None, 100.0, -5.0) is None
    assert net_income_to_common(None, None, 5.0) is None
