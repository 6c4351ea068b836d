"""Concept Resolver: logical metric → the one ConceptSeries that feeds it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sec_bankfacts.models import ConceptSeries
from sec_bankfacts.xbrl_mappings import METRICS, ConceptEntry, MetricDefinition

if TYPE_CHECKING:
    from sec_bankfacts.fact_store import FactIndex

log = logging.getLogger(__name__)


def resolve_series(index: FactIndex, metric: MetricDefinition | str) -> ConceptSeries | None:
    """Return the series of the first alias that has data, or None.

    Aliases are tried in declared order and never merged: once an alias
    yields a non-empty series it is used exclusively for this metric on
    this entity.  The index only holds accepted-form facts, so "non-empty"
    already means "has usable 10-K/10-Q data".
    """
    if isinstance(metric, str):
        metric = METRICS[metric]

    for entry in metric.concepts:
        series = _lookup(index, entry)
        if series is not None and len(series) > 0:
            log.debug("%s: %s resolved via %s:%s", index.cik, metric.name, entry.namespace, entry.xbrl_concept)
            return series
    return None


def _lookup(index: FactIndex, entry: ConceptEntry) -> ConceptSeries | None:
    return index.get(entry.namespace, entry.xbrl_concept, entry.unit)
