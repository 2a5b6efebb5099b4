"""Filtered result sets and leave-one-out facet counts.

For every dimension ``d`` the count of value ``v`` is the number of rows that
pass every active filter except ``d`` and also match ``d == v``. Counts are
recomputed from the full collection on every call; nothing is cached.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from .date_utils import utc_now
from .filters import SUBSTRING_DIMENSIONS, Row, build_predicate, row_values, value_matches
from .models.filters import Dimension, FilterState, ReportMode
from .models.records import (
    DEVICE_BUCKET_ORDER,
    STATUS_PRECEDENCE,
    FleetDataset,
    InstallRecord,
    StatusCategory,
)
from .models.settings import ReporterSettings
from .primitives import casefold_key

logger = logging.getLogger(__name__)

FacetCounts = dict[str, dict[str, int]]


def base_rows(dataset: FleetDataset | None, mode: ReportMode) -> tuple[Row, ...]:
    """The collection a report mode operates on; never a mix of both shapes."""
    if dataset is None:
        return ()
    if ReportMode(mode) is ReportMode.FLAT:
        return dataset.records
    return dataset.config_rows


def filter_rows(
    rows: Sequence[Row],
    state: FilterState,
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
    exclude: Dimension | None = None,
) -> list[Row]:
    predicate = build_predicate(state, now=now, settings=settings, exclude=exclude)
    return [row for row in rows if predicate(row)]


def facet_values(
    rows: Sequence[Row],
    dimension: Dimension,
    state: FilterState,
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
) -> list[str]:
    """Every value *dimension* can take over *rows*, plus anything selected, in display order."""
    if dimension is Dimension.DEVICE_STATUS:
        return [b.value for b in DEVICE_BUCKET_ORDER]
    if dimension is Dimension.INSTALL_STATUS:
        return [c.value for c in STATUS_PRECEDENCE]
    values = {v for row in rows for v in row_values(row, dimension, now=now, settings=settings)}
    values.update(state.selection(dimension))
    return sorted(values, key=casefold_key)


def _count_dimension(
    rows: Sequence[Row],
    dimension: Dimension,
    candidates: list[str],
    *,
    now: datetime,
    settings: ReporterSettings,
) -> dict[str, int]:
    per_row = [row_values(row, dimension, now=now, settings=settings) for row in rows]
    if dimension in SUBSTRING_DIMENSIONS:
        return {v: sum(1 for values in per_row if value_matches(dimension, values, (v,))) for v in candidates}
    tally: Counter[str] = Counter()
    for values in per_row:
        tally.update(set(values))
    return {v: tally.get(v, 0) for v in candidates}


def compute_counts(
    rows: Sequence[Row],
    state: FilterState,
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
) -> FacetCounts:
    """Leave-one-out facet counts for every dimension, keyed by dimension then value."""
    now = now or utc_now()
    settings = settings or ReporterSettings()
    counts: FacetCounts = {}
    for dimension in Dimension:
        remaining = filter_rows(rows, state, now=now, settings=settings, exclude=dimension)
        candidates = facet_values(rows, dimension, state, now=now, settings=settings)
        counts[dimension.value] = _count_dimension(remaining, dimension, candidates, now=now, settings=settings)
    return counts


def status_totals(rows: Sequence[Row]) -> dict[str, int]:
    """Item counts per category: one per record in flat mode, summed device counters in aggregate mode."""
    totals = {c.value: 0 for c in STATUS_PRECEDENCE}
    for row in rows:
        if isinstance(row, InstallRecord):
            totals[row.status.value] += 1
        else:
            for category in StatusCategory:
                totals[category.value] += row.count_for(category)
    return totals


def device_health(
    rows: Sequence[Row],
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
) -> dict[str, int]:
    """Distinct devices per health bucket among *rows*."""
    now = now or utc_now()
    settings = settings or ReporterSettings()
    buckets: dict[str, str] = {}
    for row in rows:
        if row.device_id not in buckets:
            buckets[row.device_id] = row_values(row, Dimension.DEVICE_STATUS, now=now, settings=settings)[0]
    tally = Counter(buckets.values())
    return {b.value: tally.get(b.value, 0) for b in DEVICE_BUCKET_ORDER}
