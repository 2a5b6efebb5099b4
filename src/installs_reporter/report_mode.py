"""Report mode state machine: config (aggregate) report vs generated (flat) report."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import ReportStateError, ReportValidationError
from .facets import base_rows
from .models.filters import Dimension, FilterState, ReportMode
from .models.records import FleetDataset, InstallRecord
from .models.settings import ReporterSettings
from .normalization import normalize_fleet
from .view_models.installs import compute_view

logger = logging.getLogger(__name__)


class ReportState(str, Enum):
    IDLE = "idle"
    SELECTING_ITEMS = "selecting_items"
    GENERATED_FLAT = "generated_flat"
    CONFIG_AGGREGATE = "config_aggregate"


class ReportModeResolver:
    """
    Holds the current snapshot, filter state and report state.

    The snapshot and the FilterState are replaced wholesale, never patched.
    ``view()`` always operates on exactly one collection: the flat rows
    in GENERATED_FLAT, the per-device summaries otherwise.
    """

    def __init__(self, settings: ReporterSettings | None = None) -> None:
        self.settings = settings or ReporterSettings()
        self.state = ReportState.IDLE
        self.dataset = FleetDataset()
        self.filters = FilterState()
        self.selected_items: tuple[str, ...] = ()
        self.flat_rows: tuple[InstallRecord, ...] = ()
        self.upstream_rows = False

    @property
    def report_mode(self) -> ReportMode:
        return ReportMode.FLAT if self.state is ReportState.GENERATED_FLAT else ReportMode.AGGREGATE

    def load(self, devices: Any) -> None:
        """Replace the snapshot with a freshly fetched device list."""
        self.load_dataset(normalize_fleet(devices, self.settings))

    def load_dataset(self, dataset: FleetDataset) -> None:
        """
        Swap in a new snapshot.

        A flat report drawn from the snapshot is rebuilt from the new one; rows
        handed to ``generate(records=...)`` were narrowed upstream and are kept.
        """
        self.dataset = dataset
        if self.state is ReportState.IDLE:
            self._enter(ReportState.CONFIG_AGGREGATE)
        elif self.state is ReportState.GENERATED_FLAT and not self.upstream_rows:
            self.flat_rows = dataset.records_for_items(self.selected_items)

    def select_items_for_report(self) -> None:
        if self.state not in (ReportState.IDLE, ReportState.CONFIG_AGGREGATE):
            raise ReportStateError(f"cannot start item selection from {self.state.value}")
        self._enter(ReportState.SELECTING_ITEMS)

    def toggle_item(self, name: str) -> None:
        if self.state is not ReportState.SELECTING_ITEMS:
            raise ReportStateError(f"cannot select items from {self.state.value}")
        if name in self.selected_items:
            self.selected_items = tuple(n for n in self.selected_items if n != name)
        else:
            self.selected_items = (*self.selected_items, name)

    def generate(
        self,
        item_names: Iterable[str] | None = None,
        records: Iterable[InstallRecord] | None = None,
    ) -> None:
        """
        Build the flat report for the selected items.

        *records* lets a caller pass rows already filtered upstream
        (``fetch_filtered_installs``); otherwise rows are drawn from the
        loaded snapshot. Raises ReportValidationError and changes nothing
        when no item is selected.
        """
        if self.state is not ReportState.SELECTING_ITEMS:
            raise ReportStateError(f"cannot generate a report from {self.state.value}")
        names = tuple(dict.fromkeys(item_names)) if item_names is not None else self.selected_items
        if not names:
            raise ReportValidationError("select at least one item")
        self.selected_items = names
        if records is not None:
            wanted = set(names)
            self.flat_rows = tuple(r for r in records if r.name in wanted)
        else:
            self.flat_rows = self.dataset.records_for_items(names)
        self.upstream_rows = records is not None
        self.filters = self.filters.with_report_mode(ReportMode.FLAT)
        self._enter(ReportState.GENERATED_FLAT)

    def reset(self) -> None:
        """Back to item selection with every filter and the search cleared."""
        if self.state is not ReportState.GENERATED_FLAT:
            raise ReportStateError(f"cannot reset from {self.state.value}")
        self.flat_rows = ()
        self.upstream_rows = False
        self.filters = FilterState()
        self._enter(ReportState.SELECTING_ITEMS)

    def back_to_config_report(self) -> None:
        """Back to the per-device report; the search and install-status selections are dropped."""
        self.selected_items = ()
        self.flat_rows = ()
        self.upstream_rows = False
        self.filters = (
            self.filters.without(Dimension.INSTALL_STATUS).with_search("").with_report_mode(ReportMode.AGGREGATE)
        )
        self._enter(ReportState.CONFIG_AGGREGATE)

    def update_filters(self, filters: FilterState) -> None:
        self.filters = filters.with_report_mode(self.report_mode)

    def rows(self) -> tuple[Any, ...]:
        if self.state is ReportState.GENERATED_FLAT:
            return self.flat_rows
        return base_rows(self.dataset, ReportMode.AGGREGATE)

    def view(self, *, sort: Any = None, now: datetime | None = None) -> dict[str, Any]:
        dataset = self.dataset
        if self.state is ReportState.GENERATED_FLAT:
            dataset = FleetDataset(records=self.flat_rows, summaries=self.dataset.summaries)
        return compute_view(dataset, self.filters, self.report_mode, sort=sort, now=now, settings=self.settings)

    def _enter(self, state: ReportState) -> None:
        if state is not self.state:
            logger.debug("Report state %s -> %s", self.state.value, state.value)
        self.state = state
