"""Data Quality Gate: plausibility bounds and staleness exclusion.

Bounds are sanity limits, not analyst judgements: a bank with a 250% ROE
or a 5% efficiency ratio almost always means a mis-tagged concept or a
units error upstream.  The offending value is nulled and the reason kept
on the record; the rest of the record is still emitted.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import NamedTuple


class Bound(NamedTuple):
    min: float
    max: float
    unit: str = "%"


PLAUSIBILITY_BOUNDS: dict[str, Bound] = {
    "efficiency_ratio": Bound(20, 150),
    "deposits_to_assets": Bound(10, 100),
    "equity_to_assets": Bound(1, 50),
    "tce_to_ta": Bound(0, 40),
    "roe": Bound(-100, 100),
    "roaa": Bound(-10, 10),
}

DEFAULT_STALENESS_DAYS = 150


def apply_bounds(
    values: dict[str, float | None],
    bounds: dict[str, Bound] = PLAUSIBILITY_BOUNDS,
) -> tuple[dict[str, float | None], list[str]]:
    """Null out-of-bound values.

    Returns a new dict (the input is left untouched) and one human-readable
    issue per violation, in bound-table order.
    """
    checked = dict(values)
    issues: list[str] = []
    for metric, bound in bounds.items():
        value = checked.get(metric)
        if value is None:
            continue
        if value < bound.min or value > bound.max:
            issues.append(
                f"{metric} value {value:.2f}{bound.unit} outside range [{bound.min}, {bound.max}]"
            )
            checked[metric] = None
    return checked, issues


def is_stale(
    reference_date: date | None,
    now: datetime | date,
    max_age_days: int = DEFAULT_STALENESS_DAYS,
) -> bool:
    """True when the data's reference date is missing or older than ``max_age_days``."""
    if reference_date is None:
        return True
    today = now.date() if isinstance(now, datetime) else now
    return (today - reference_date).days > max_age_days
