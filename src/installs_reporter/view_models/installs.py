"""Installs report view-model builder."""

import logging
from datetime import datetime
from typing import Any

from ..date_utils import utc_now
from ..export import SortState, columns_for, sort_rows, to_csv
from ..facets import base_rows, compute_counts, device_health, filter_rows, status_totals
from ..models.filters import FilterState, ReportMode
from ..models.records import FleetDataset
from ..models.settings import ReporterSettings
from .common import build_meta

logger = logging.getLogger(__name__)


def compute_view(
    dataset: FleetDataset | None,
    filter_state: FilterState | None,
    report_mode: ReportMode | str | None = None,
    *,
    sort: SortState | None = None,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, Any]:
    """
    Build the full report view for one (dataset, filter state, report mode).

    Pure apart from reading the clock when *now* is omitted: identical
    inputs give identical rows, facet counts and CSV text. A missing
    dataset renders as an empty view with every count at zero.

    Returns a dict with:
      - meta: report stamps
      - mode: "flat" or "aggregate"
      - rows: filtered InstallRecord (flat) or DeviceConfigSummary (aggregate) rows
      - sorted_rows: *rows* in the requested sort order
      - facet_counts: {dimension: {value: count}} with leave-one-out semantics
      - status_totals / device_health: totals over *rows*
      - columns: export headers
      - csv_text: *sorted_rows* serialized with the mode's fixed columns
    """
    state = filter_state or FilterState()
    mode = ReportMode(report_mode) if report_mode is not None else state.report_mode
    now = now or utc_now()
    settings = settings or ReporterSettings()

    universe = base_rows(dataset, mode)
    rows = filter_rows(universe, state, now=now, settings=settings)
    columns = columns_for(mode.value)
    ordered = sort_rows(rows, sort, columns)
    logger.debug("compute_view: mode=%s %d/%d rows after filters", mode.value, len(rows), len(universe))

    return {
        "meta": build_meta(report_stamp, report_date, report_id),
        "mode": mode.value,
        "rows": rows,
        "sorted_rows": ordered,
        "facet_counts": compute_counts(universe, state, now=now, settings=settings),
        "status_totals": status_totals(rows),
        "device_health": device_health(rows, now=now, settings=settings),
        "columns": [header for header, _ in columns],
        "csv_text": to_csv(ordered, columns),
    }
