"""TTM Assembler: trailing-twelve-month flow figures.

Strategy, in order:
  1. Sum four quarterly facts whose end dates match the four calendar
     quarter-ends at or before the reference date ("sum-4Q").
  2. If only the December quarter is missing, derive it from the annual
     figure of that fiscal year: Q4 = FY − (Q1 + Q2 + Q3).  Many banks
     never file a Q4 10-Q; the fourth quarter only exists inside the 10-K.
  3. Otherwise fall back to a single annual fact close to the reference
     date ("annual" / "annual-fallback").
  4. Otherwise None.

Matching is by calendar quarter-end, so a filer whose fiscal quarters do
not end on calendar quarter-ends (or who changed fiscal year end) lands
in the annual fallback or None rather than a guessed sum.

Known limitation: the derived Q4 assumes Q1–Q3 and the annual figure are
reported on the same basis.  If the 10-K restates earlier quarters the
derived Q4 silently absorbs the restatement.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pandas as pd

from sec_bankfacts.models import ConceptSeries, RawFact, ResolvedTTM, TTMContribution
from sec_bankfacts.periods import PeriodLength
from sec_bankfacts.xbrl_mappings import ACCEPTED_FORMS, ANNUAL_FORM

log = logging.getLogger(__name__)

DEFAULT_FALLBACK_WINDOW_MONTHS = 6

# Calendar quarter-end (month, day)
_QUARTER_ENDS = {3: 31, 6: 30, 9: 30, 12: 31}


def _quarter_end(year: int, month: int) -> date:
    return date(year, month, _QUARTER_ENDS[month])


def _previous_quarter_end(d: date) -> date:
    if d.month == 3:
        return _quarter_end(d.year - 1, 12)
    return _quarter_end(d.year, d.month - 3)


def expected_quarter_ends(reference_date: date) -> list[date]:
    """The four calendar quarter-ends at or before ``reference_date``, newest first."""
    month = ((reference_date.month - 1) // 3 + 1) * 3
    current = _quarter_end(reference_date.year, month)
    if current > reference_date:
        current = _previous_quarter_end(current)

    ends = [current]
    while len(ends) < 4:
        ends.append(_previous_quarter_end(ends[-1]))
    return ends


def _latest_filed(facts: list[RawFact]) -> RawFact | None:
    """Pick the latest-filed fact; missing filed dates lose, then later end wins."""
    if not facts:
        return None
    return max(facts, key=lambda f: (f.filed is not None, f.filed or f.end, f.end))


def _by_year_month(facts: list[RawFact]) -> dict[tuple[int, int], RawFact]:
    grouped: dict[tuple[int, int], list[RawFact]] = {}
    for f in facts:
        grouped.setdefault((f.end.year, f.end.month), []).append(f)
    return {key: _latest_filed(group) for key, group in grouped.items()}


def _within_months(end: date, reference_date: date, months: int) -> bool:
    ref = pd.Timestamp(reference_date)
    return ref - pd.DateOffset(months=months) <= pd.Timestamp(end) <= ref + pd.DateOffset(months=months)


def _derive_q4(
    annual: RawFact,
    q1: RawFact,
    q2: RawFact,
    q3: RawFact,
) -> RawFact:
    value = annual.value - (q1.value + q2.value + q3.value)
    return RawFact(
        namespace=annual.namespace,
        concept=annual.concept,
        value=value,
        unit=annual.unit,
        end=annual.end,
        start=q3.end + timedelta(days=1),
        form=ANNUAL_FORM,
        fiscal_year=annual.end.year,
        fiscal_period="Q4",
        filed=annual.filed,
        accession=annual.accession,
        period_length=int(PeriodLength.QUARTERLY),
    )


def _sum_result(contributions: list[TTMContribution]) -> ResolvedTTM:
    return ResolvedTTM(
        value=sum(c.fact.value for c in contributions),
        anchor_date=max(c.fact.end for c in contributions),
        method="sum-4Q",
        contributions=contributions,
    )


def assemble_ttm(
    series: ConceptSeries | None,
    reference_date: date,
    window_months: int = DEFAULT_FALLBACK_WINDOW_MONTHS,
) -> ResolvedTTM | None:
    """Build a TTM figure for ``series`` anchored at ``reference_date``."""
    if series is None:
        return None

    accepted = [f for f in series.facts if f.form in ACCEPTED_FORMS]
    quarterly = [f for f in accepted if f.period_length == PeriodLength.QUARTERLY]
    annual = [f for f in accepted if f.period_length == PeriodLength.ANNUAL]

    quarters = _by_year_month(quarterly)
    annuals = _by_year_month(annual)
    slots = expected_quarter_ends(reference_date)

    matched = [(slot, quarters.get((slot.year, slot.month))) for slot in slots]
    found = [fact for _, fact in matched if fact is not None]

    # ── 1. four reported quarters ──────────────────────────────────
    if len(found) == 4:
        return _sum_result([TTMContribution(fact=f) for f in found])

    # ── 2. three quarters + derived December quarter ───────────────
    if len(found) == 3:
        missing = next(slot for slot, fact in matched if fact is None)
        if missing.month == 12:
            year = missing.year
            fy = annuals.get((year, 12))
            q1, q2, q3 = (quarters.get((year, m)) for m in (3, 6, 9))
            if fy is not None and q1 and q2 and q3:
                derived = _derive_q4(fy, q1, q2, q3)
                contributions = [
                    TTMContribution(fact=derived, derived=True) if fact is None else TTMContribution(fact=fact)
                    for _, fact in matched
                ]
                log.debug("%s: derived Q4 %d = %s − (Q1+Q2+Q3)", series.concept, year, fy.value)
                return _sum_result(contributions)

    # ── 3. single annual fact near the reference date ──────────────
    if reference_date.month >= 10:
        candidate_years = [reference_date.year]
    else:
        candidate_years = [reference_date.year, reference_date.year - 1]

    for year in candidate_years:
        options = [f for f in annual if f.end.year == year]
        fact = _latest_filed([f for f in options if f.end == max(o.end for o in options)]) if options else None
        if fact is None or not _within_months(fact.end, reference_date, window_months):
            continue
        return ResolvedTTM(
            value=fact.value,
            anchor_date=fact.end,
            method="annual-fallback" if quarterly else "annual",
            contributions=[TTMContribution(fact=fact)],
        )

    return None
