"""Tests for latest point-in-time and multi-point average resolution."""

from datetime import date

from sec_bankfacts.balances import average_point_in_time, latest_point_in_time
from sec_bankfacts.models import ConceptSeries, RawFact


def _fact(end, value, form="10-Q", filed=None, period_length=0):
    return RawFact(
        namespace="us-gaap", concept="StockholdersEquity", value=value, unit="USD",
        end=end, form=form, filed=filed, period_length=period_length,
    )


def _series(*facts):
    return ConceptSeries(namespace="us-gaap", concept="StockholdersEquity", unit="USD", facts=list(facts))


QUARTER_ENDS = [date(2024, 12, 31), date(2024, 9, 30), date(2024, 6, 30), date(2024, 3, 31),
                date(2023, 12, 31), date(2023, 9, 30)]


def test_latest_picks_most_recent_end():
    s = _series(_fact(date(2024, 6, 30), 200.0), _fact(date(2024, 9, 30), 300.0))
    r = latest_point_in_time(s)
    assert r.value == 300.0
    assert r.end_date == date(2024, 9, 30)
    assert r.form == "10-Q"


def test_latest_tie_goes_to_latest_filed():
    s = _series(
        _fact(date(2024, 9, 30), 300.0, filed=date(2024, 11, 1)),
        _fact(date(2024, 9, 30), 310.0, filed=date(2025, 2, 20), form="10-K"),
    )
    assert latest_point_in_time(s).value == 310.0


def test_latest_ignores_duration_facts_and_other_forms():
    s = _series(
        _fact(date(2024, 12, 31), 999.0, period_length=4),
        _fact(date(2024, 11, 30), 888.0, form="8-K"),
        _fact(date(2024, 9, 30), 300.0),
    )
    assert latest_point_in_time(s).value == 300.0


def test_latest_none_for_empty():
    assert latest_point_in_time(None) is None
    assert latest_point_in_time(_series()) is None


def test_average_five_most_recent():
    values = [600.0, 500.0, 400.0, 300.0, 200.0, 100.0]
    s = _series(*[_fact(d, v) for d, v in zip(QUARTER_ENDS, values)])

    r = average_point_in_time(s)

    assert r.average == (600 + 500 + 400 + 300 + 200) / 5
    assert r.method == "5-point-avg"
    assert r.period_count == 5
    assert r.ending == 600.0
    assert r.ending_date == date(2024, 12, 31)
    assert r.beginning_date == date(2023, 12, 31)


def test_average_single_period():
    r = average_point_in_time(_series(_fact(date(2024, 12, 31), 250.0)))
    assert r.average == r.ending == 250.0
    assert r.method == "single-period"
    assert r.period_count == 1
    assert r.beginning_date is None


def test_average_two_points():
    s = _series(_fact(date(2024, 12, 31), 300.0), _fact(date(2024, 9, 30), 100.0))
    r = average_point_in_time(s)
    assert r.average == 200.0
    assert r.method == "2-point-avg"


def test_average_duplicate_end_counts_once():
    # Prior-year balance repeated in the later 10-K must not be double counted
    s = _series(
        _fact(date(2024, 12, 31), 300.0, form="10-K", filed=date(2025, 2, 20)),
        _fact(date(2023, 12, 31), 100.0, form="10-K", filed=date(2025, 2, 20)),
        _fact(date(2023, 12, 31), 90.0, form="10-K", filed=date(2024, 2, 20)),
    )
    r = average_point_in_time(s)
    assert r.period_count == 2
    assert r.average == 200.0


def test_average_none_for_empty():
    assert average_point_in_time(_series()) is None
