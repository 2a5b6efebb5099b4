"""Device data sources and the filter-options discovery payload."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import BaseModel, ConfigDict

from .errors import UpstreamFetchError
from .filters import build_predicate
from .models.filters import Dimension, FilterState
from .models.records import ConfigType, InstallRecord
from .models.settings import ReporterSettings
from .normalization import normalize_fleet
from .primitives import UNKNOWN, casefold_key

logger = logging.getLogger(__name__)


class FilterSelections(BaseModel):
    """Server-side query for a generated report: item names plus inventory selections."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    installs: tuple[str, ...] = ()
    usages: tuple[str, ...] = ()
    catalogs: tuple[str, ...] = ()
    rooms: tuple[str, ...] = ()
    fleets: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()

    def to_filter_state(self) -> FilterState:
        state = FilterState()
        for dimension, values in (
            (Dimension.USAGE, self.usages),
            (Dimension.CATALOG, self.catalogs),
            (Dimension.ROOM, self.rooms),
            (Dimension.FLEET, self.fleets),
            (Dimension.PLATFORM, self.platforms),
        ):
            state = state.with_selection(dimension, values)
        return state


class DeviceSource(Protocol):
    def fetch_device_list(self) -> list[dict[str, Any]]: ...

    def fetch_filter_options(self) -> dict[str, Any]: ...

    def fetch_filtered_installs(self, query: FilterSelections) -> list[InstallRecord]: ...


def _sorted_values(values: Any) -> list[str]:
    return sorted({v for v in values if v and v != UNKNOWN}, key=casefold_key)


def build_filter_options(devices: Any, settings: ReporterSettings | None = None) -> dict[str, Any]:
    """
    Discovery payload for populating facet chips before any filter is applied.

    Managed item names come from devices with install data; inventory
    values come from every device. ``Unknown`` sentinels are not offered.
    """
    dataset = normalize_fleet(devices, settings)
    summaries = dataset.summaries
    with_data = [s for s in summaries if s.config_type is not ConfigType.NONE]
    return {
        "managed_installs": _sorted_values(r.name for r in dataset.records),
        "other_installs": [],
        "usages": _sorted_values(s.usage for s in summaries),
        "catalogs": _sorted_values(s.catalog for s in summaries),
        "rooms": _sorted_values(s.room for s in summaries),
        "fleets": _sorted_values(s.fleet for s in summaries),
        "platforms": _sorted_values(s.platform for s in summaries),
        "manifests": _sorted_values(s.client_identifier for s in with_data),
        "software_repos": _sorted_values(s.software_repo_url for s in with_data),
        "agent_versions": _sorted_values(s.version for s in with_data),
        "devices_with_data": len(with_data),
        "total_devices": len(summaries),
    }


class SnapshotSource:
    """
    File-backed device source. Reads a YAML or JSON fleet snapshot holding
    either a list of devices or a mapping with a ``devices`` list.
    """

    def __init__(self, path: str | Path, settings: ReporterSettings | None = None) -> None:
        self.path = Path(path)
        self.settings = settings or ReporterSettings()

    def fetch_device_list(self) -> list[dict[str, Any]]:
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except OSError as exc:
            raise UpstreamFetchError(f"Cannot read device snapshot {self.path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise UpstreamFetchError(f"Device snapshot {self.path} is not valid YAML/JSON: {exc}") from exc

        if data is None:
            return []
        if isinstance(data, dict):
            data = data.get("devices")
        if not isinstance(data, list):
            raise UpstreamFetchError(f"Device snapshot {self.path} must be a list or contain a 'devices' list")
        logger.debug("Loaded %d devices from %s", len(data), self.path)
        return data

    def fetch_filter_options(self) -> dict[str, Any]:
        return build_filter_options(self.fetch_device_list(), self.settings)

    def fetch_filtered_installs(self, query: FilterSelections, now: datetime | None = None) -> list[InstallRecord]:
        """Install rows for the selected items narrowed by the inventory selections."""
        dataset = normalize_fleet(self.fetch_device_list(), self.settings)
        records = dataset.records_for_items(query.installs) if query.installs else dataset.records
        predicate = build_predicate(query.to_filter_state(), now=now, settings=self.settings)
        return [r for r in records if predicate(r)]
