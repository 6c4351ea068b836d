"""Period classification for XBRL facts.

The companyfacts API has no explicit "quarters covered" field, so the
period length is inferred:

  - balance sheet concepts         → 0 (point-in-time), even with a start date
  - no start date                  → 0 (point-in-time)
  - duration  ≤ 100 days           → 1 (quarterly, ~90 days)
  - duration 101–200 days          → 2 (semi-annual, ~180 days)
  - duration 201–300 days          → 3 (nine months, ~270 days)
  - duration  > 300 days           → 4 (annual, ~365 days)

The 100/200/300-day cutoffs are a heuristic: they ignore leap years and
52/53-week fiscal calendars.  They are kept exactly as-is so output stays
comparable with historical datasets; explicit fiscal-period metadata
would be the better signal where a source provides it.
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum

import pandas as pd

from sec_bankfacts.xbrl_mappings import BALANCE_CONCEPTS


class PeriodLength(IntEnum):
    POINT_IN_TIME = 0
    QUARTERLY = 1
    SEMI_ANNUAL = 2
    NINE_MONTH = 3
    ANNUAL = 4


# Upper bounds (inclusive, in days) for lengths 1, 2 and 3; anything longer is annual
QUARTER_MAX_DAYS = 100
SEMI_ANNUAL_MAX_DAYS = 200
NINE_MONTH_MAX_DAYS = 300

_DURATION_BINS = [float("-inf"), QUARTER_MAX_DAYS, SEMI_ANNUAL_MAX_DAYS, NINE_MONTH_MAX_DAYS, float("inf")]
_DURATION_LABELS = [
    PeriodLength.QUARTERLY,
    PeriodLength.SEMI_ANNUAL,
    PeriodLength.NINE_MONTH,
    PeriodLength.ANNUAL,
]


def length_for_duration(days: int) -> PeriodLength:
    """Map a duration in days to a period length."""
    if days <= QUARTER_MAX_DAYS:
        return PeriodLength.QUARTERLY
    if days <= SEMI_ANNUAL_MAX_DAYS:
        return PeriodLength.SEMI_ANNUAL
    if days <= NINE_MONTH_MAX_DAYS:
        return PeriodLength.NINE_MONTH
    return PeriodLength.ANNUAL


def infer_period_length(concept: str, end: date, start: date | None = None) -> PeriodLength:
    """Classify a single fact's temporal shape."""
    if concept in BALANCE_CONCEPTS:
        return PeriodLength.POINT_IN_TIME
    if start is None:
        return PeriodLength.POINT_IN_TIME
    return length_for_duration((end - start).days)


def classify_periods(df: pd.DataFrame) -> pd.Series:
    """Vectorised infer_period_length over a fact table.

    Expects ``concept``, ``start`` and ``end`` columns (dates already parsed).
    Returns an int Series aligned with ``df``.
    """
    if df.empty:
        return pd.Series([], dtype="int64", index=df.index)

    duration_days = (df["end"] - df["start"]).dt.days
    lengths = pd.cut(
        duration_days,
        bins=_DURATION_BINS,
        labels=[int(label) for label in _DURATION_LABELS],
        right=True,
    ).astype("float64")

    instant = df["start"].isna() | df["concept"].isin(BALANCE_CONCEPTS)
    lengths = lengths.where(~instant, float(PeriodLength.POINT_IN_TIME))
    return lengths.fillna(float(PeriodLength.POINT_IN_TIME)).astype("int64")
