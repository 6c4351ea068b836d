"""Point-in-time and multi-point average resolution for balance metrics.

Return ratios divide a twelve-month flow by a balance; using only the
ending balance overstates returns for a shrinking bank and understates
them for a growing one.  The average resolver follows the FFIEC UBPR
convention of averaging up to five quarter-end balances (the current
quarter-end plus the four before it), falling back to fewer points when
history is short.
"""

from __future__ import annotations

from sec_bankfacts.models import ConceptSeries, RawFact, ResolvedAverage, ResolvedPointInTime
from sec_bankfacts.periods import PeriodLength
from sec_bankfacts.xbrl_mappings import ACCEPTED_FORMS

MAX_AVERAGE_POINTS = 5


def _instant_facts(series: ConceptSeries | None) -> list[RawFact]:
    """Point-in-time, accepted-form facts sorted end desc, then filed desc."""
    if series is None:
        return []
    facts = [
        f for f in series.facts
        if f.period_length == PeriodLength.POINT_IN_TIME and f.form in ACCEPTED_FORMS
    ]
    # Two passes so ties on end resolve to the latest filing; missing filed sorts last
    facts.sort(key=lambda f: (f.filed is not None, f.filed or f.end), reverse=True)
    facts.sort(key=lambda f: f.end, reverse=True)
    return facts


def latest_point_in_time(series: ConceptSeries | None) -> ResolvedPointInTime | None:
    """Most recent balance, or None when the series has no instant facts."""
    facts = _instant_facts(series)
    if not facts:
        return None
    fact = facts[0]
    return ResolvedPointInTime(value=fact.value, end_date=fact.end, form=fact.form, fact=fact)


def average_point_in_time(
    series: ConceptSeries | None,
    max_points: int = MAX_AVERAGE_POINTS,
) -> ResolvedAverage | None:
    """Arithmetic mean of up to ``max_points`` most recent distinct balances.

    Duplicate end dates (a balance repeated as the prior-period column of a
    later filing) count once, keeping the latest-filed value.
    """
    unique: list[RawFact] = []
    seen: set = set()
    for fact in _instant_facts(series):
        if fact.end in seen:
            continue
        seen.add(fact.end)
        unique.append(fact)

    if not unique:
        return None

    ending = unique[0]
    if len(unique) == 1:
        return ResolvedAverage(
            average=ending.value,
            ending=ending.value,
            ending_date=ending.end,
            beginning_date=None,
            method="single-period",
            period_count=1,
            facts=[ending],
        )

    points = unique[:max_points]
    average = sum(f.value for f in points) / len(points)
    return ResolvedAverage(
        average=average,
        ending=ending.value,
        ending_date=ending.end,
        beginning_date=points[-1].end,
        method=f"{len(points)}-point-avg",
        period_count=len(points),
        facts=points,
    )
