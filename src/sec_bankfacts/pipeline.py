"""Per-entity pipeline and the concurrent batch runner.

For one entity:

    load document → FactIndex → resolve balances (latest + average)
                              → assemble TTM flows at the balance-sheet date
                              → ratios → plausibility bounds → staleness

and for the whole run, a bounded thread pool with an optional deadline.
Every entity's failure is isolated: a fetch or parse error is logged and
counted, never propagated to the batch.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import date, datetime, timezone
from typing import NamedTuple, Protocol

from sec_bankfacts.balances import average_point_in_time, latest_point_in_time
from sec_bankfacts.config import Settings, get_config
from sec_bankfacts.errors import FactsFetchError, FactsParseError
from sec_bankfacts.fact_store import FactIndex
from sec_bankfacts.models import (
    EntityAudit,
    EntityIdentity,
    EntityRecord,
    ResolvedAverage,
    ResolvedFigure,
    ResolvedPointInTime,
    ResolvedTTM,
    RunSummary,
)
from sec_bankfacts.quality import apply_bounds, is_stale
from sec_bankfacts.ratios import compute_ratios, net_income_to_common
from sec_bankfacts.resolver import resolve_series
from sec_bankfacts.ttm import assemble_ttm
from sec_bankfacts.xbrl_mappings import METRICS, MetricKind

log = logging.getLogger(__name__)

PROGRESS_EVERY = 50

# Balances that default to 0 when not reported
_ZERO_DEFAULT_BALANCES = ("preferred_stock", "goodwill", "intangibles")

# Flow metric → EntityRecord field
_TTM_FIELDS = {
    "interest_income": "ttm_interest_income",
    "interest_expense": "ttm_interest_expense",
    "net_interest_income": "ttm_net_interest_income",
    "noninterest_income": "ttm_noninterest_income",
    "noninterest_expense": "ttm_noninterest_expense",
    "provision_for_credit_losses": "ttm_provision_for_credit_losses",
    "pre_tax_income": "ttm_pre_tax_income",
    "net_income": "ttm_net_income",
    "eps": "ttm_eps",
    "operating_cash_flow": "ttm_operating_cash_flow",
    "dividends_per_share": "ttm_dividend_per_share",
}
_PER_SHARE_FLOWS = ("eps", "dividends_per_share")


class FactSource(Protocol):
    method: str

    def load(self, cik: str) -> dict | None: ...


class EntityOutcome(NamedTuple):
    status: str                      # "ok" | "no_data" | "cancelled"
    record: EntityRecord | None = None
    audit: EntityAudit | None = None


class PipelineResult(NamedTuple):
    records: list[EntityRecord]
    audits: dict[str, EntityAudit]
    summary: RunSummary


# ═══════════════════════════════════════════════════════════════════════════
#  Audit helpers
# ═══════════════════════════════════════════════════════════════════════════

def _pit_figure(r: ResolvedPointInTime | None) -> ResolvedFigure | None:
    if r is None:
        return None
    return ResolvedFigure(concept=r.fact.concept, method="latest", value=r.value,
                          facts=[r.fact], derived=[False])


def _avg_figure(r: ResolvedAverage | None) -> ResolvedFigure | None:
    if r is None:
        return None
    return ResolvedFigure(concept=r.facts[0].concept, method=r.method, value=r.average,
                          facts=r.facts, derived=[False] * len(r.facts))


def _ttm_figure(r: ResolvedTTM | None) -> ResolvedFigure | None:
    if r is None:
        return None
    return ResolvedFigure(
        concept=r.contributions[0].fact.concept,
        method=r.method,
        value=r.value,
        facts=[c.fact for c in r.contributions],
        derived=[c.derived for c in r.contributions],
    )


# ═══════════════════════════════════════════════════════════════════════════
#  One entity
# ═══════════════════════════════════════════════════════════════════════════

def build_entity_record(
    identity: EntityIdentity,
    index: FactIndex,
    now: datetime,
    settings: Settings | None = None,
) -> tuple[EntityRecord, EntityAudit]:
    """Resolve, assemble and score one entity.  Pure given (index, now)."""
    cfg = settings or get_config()

    # ── Balances ──────────────────────────────────────────────────
    latest: dict[str, ResolvedPointInTime | None] = {}
    balances: dict[str, float | None] = {}
    for name, metric in METRICS.items():
        if metric.kind is not MetricKind.BALANCE:
            continue
        latest[name] = latest_point_in_time(resolve_series(index, metric))
        balances[name] = latest[name].value if latest[name] else None
    for name in _ZERO_DEFAULT_BALANCES:
        if balances[name] is None:
            balances[name] = 0.0

    avg_assets = average_point_in_time(resolve_series(index, "total_assets"))
    avg_equity = average_point_in_time(resolve_series(index, "total_equity"))
    averages = {
        "avg_assets": round(avg_assets.average) if avg_assets else None,
        "avg_equity": round(avg_equity.average) if avg_equity else None,
    }
    avg_method = (avg_equity or avg_assets).method if (avg_equity or avg_assets) else None

    # ── TTM flows, anchored at the balance-sheet date ─────────────
    balance_date: date | None = None
    for name in ("total_assets", "total_equity"):
        if latest[name] is not None:
            balance_date = latest[name].end_date
            break
    reference = balance_date or now.date()

    ttm: dict[str, ResolvedTTM | None] = {}
    flows: dict[str, float | None] = {}
    for name, metric in METRICS.items():
        if metric.kind is not MetricKind.FLOW:
            continue
        ttm[name] = assemble_ttm(
            resolve_series(index, metric), reference, cfg.annual_fallback_window_months,
        )
        flows[name] = ttm[name].value if ttm[name] else None

    ni_common = net_income_to_common(
        flows["net_income_to_common"], flows["net_income"], flows["preferred_dividends"],
    )

    # ── Ratios + quality gate ─────────────────────────────────────
    ratios, issues = apply_bounds(compute_ratios(balances, averages, flows))

    data_date = balance_date
    if data_date is None and ttm["net_income"] is not None:
        data_date = ttm["net_income"].anchor_date

    record_fields = {field: flows[name] for name, field in _TTM_FIELDS.items()}
    for name in _PER_SHARE_FLOWS:
        field = _TTM_FIELDS[name]
        if record_fields[field] is not None:
            record_fields[field] = round(record_fields[field], 4)

    record = EntityRecord(
        cik=identity.cik,
        ticker=identity.ticker,
        bank_name=identity.name or index.entity_name,
        exchange=identity.exchange,
        otc_tier=identity.otc_tier,
        sic=identity.sic,
        sic_description=identity.sic_description,
        **balances,
        **averages,
        return_ratio_avg_method=avg_method,
        **record_fields,
        ttm_net_income_to_common=ni_common,
        ttm_method=ttm["net_income"].method if ttm["net_income"] else None,
        dividend_method=ttm["dividends_per_share"].method if ttm["dividends_per_share"] else None,
        **ratios,
        data_quality_issues=issues or None,
        has_data_quality_issues=bool(issues),
        data_date=data_date,
        is_stale=is_stale(data_date, now, cfg.staleness_days),
        updated_at=now,
    )

    audit = EntityAudit(
        ticker=identity.ticker,
        company_name=record.bank_name,
        balance_sheet={name: _pit_figure(r) for name, r in latest.items()},
        averages={"total_assets": _avg_figure(avg_assets), "total_equity": _avg_figure(avg_equity)},
        flows={name: _ttm_figure(r) for name, r in ttm.items()},
    )
    return record, audit


def process_entity(
    identity: EntityIdentity,
    source: FactSource,
    now: datetime,
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> EntityOutcome:
    """Load and build one entity.  Raises FactsFetchError / FactsParseError."""
    if cancel is not None and cancel.is_set():
        return EntityOutcome("cancelled")

    document = source.load(identity.cik)
    if document is None:
        return EntityOutcome("no_data")

    index = FactIndex.from_document(document, identity.cik)
    if not index:
        log.debug("%s (%s): no usable 10-K/10-Q facts", identity.ticker, identity.cik)
        return EntityOutcome("no_data")

    record, audit = build_entity_record(identity, index, now, settings)
    return EntityOutcome("ok", record, audit)


# ═══════════════════════════════════════════════════════════════════════════
#  Batch
# ═══════════════════════════════════════════════════════════════════════════

def _sort_key(record: EntityRecord) -> tuple[str, str]:
    return (record.ticker or "", record.cik)


def run_pipeline(
    identities: list[EntityIdentity],
    source: FactSource,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> PipelineResult:
    """Process all entities in a thread pool and collect surviving records.

    Results are gathered in this thread from completed futures only.  When
    ``settings.deadline_seconds`` elapses, waiting stops, pending entities
    are cancelled, and everything already completed is kept.
    """
    cfg = settings or get_config()
    now = now or datetime.now(timezone.utc)
    cancel = threading.Event()

    summary = RunSummary(entities=len(identities))
    records: list[EntityRecord] = []
    audits: dict[str, EntityAudit] = {}
    consumed: set = set()

    def collect(future, identity: EntityIdentity) -> None:
        consumed.add(future)
        try:
            outcome = future.result()
        except (FactsFetchError, FactsParseError) as exc:
            summary.processed += 1
            summary.errored += 1
            log.warning("%s (%s): %s", identity.ticker, identity.cik, exc)
            return
        except Exception:
            summary.processed += 1
            summary.errored += 1
            log.exception("%s (%s): unexpected error", identity.ticker, identity.cik)
            return

        if outcome.status == "cancelled":
            summary.cancelled += 1
            return

        summary.processed += 1
        if summary.processed % PROGRESS_EVERY == 0:
            log.info("Progress: %d/%d entities processed", summary.processed, summary.entities)

        if outcome.status == "no_data":
            summary.no_data += 1
            return

        summary.succeeded += 1
        record = outcome.record
        if record.is_stale:
            summary.stale_excluded += 1
            log.debug("%s: stale (data date %s), excluded", record.ticker, record.data_date)
            return
        if record.has_data_quality_issues:
            summary.quality_flagged += 1
        records.append(record)
        audits[record.cik] = outcome.audit

    executor = ThreadPoolExecutor(max_workers=max(1, cfg.max_workers))
    futures = {
        executor.submit(process_entity, identity, source, now, cfg, cancel): identity
        for identity in identities
    }
    try:
        for future in as_completed(futures, timeout=cfg.deadline_seconds):
            collect(future, futures[future])
    except FuturesTimeoutError:
        log.warning("Deadline of %ss reached, cancelling pending entities", cfg.deadline_seconds)
        cancel.set()
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    # Entities in flight at the deadline still finish; keep them
    for future, identity in futures.items():
        if future in consumed:
            continue
        if future.cancelled():
            summary.cancelled += 1
        else:
            collect(future, identity)

    records.sort(key=_sort_key)
    summary.emitted = len(records)
    audits = {r.cik: audits[r.cik] for r in records}

    log.info(
        "Run complete: %d entities, %d processed, %d succeeded, %d emitted, %d no-data, "
        "%d quality-flagged, %d stale-excluded, %d errored, %d cancelled",
        summary.entities, summary.processed, summary.succeeded, summary.emitted,
        summary.no_data, summary.quality_flagged, summary.stale_excluded,
        summary.errored, summary.cancelled,
    )
    return PipelineResult(records, audits, summary)
