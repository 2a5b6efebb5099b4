"""Immutable filter state: one selection per facet dimension plus free-text search."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .records import DeviceBucket, StatusCategory


class Dimension(str, Enum):
    USAGE = "usage"
    CATALOG = "catalog"
    FLEET = "fleet"
    PLATFORM = "platform"
    ROOM = "room"
    MANIFEST = "manifest"
    SOFTWARE_REPO = "software_repo"
    AGENT_VERSION = "agent_version"
    DEVICE_STATUS = "device_status"
    INSTALL_STATUS = "install_status"


class ReportMode(str, Enum):
    AGGREGATE = "aggregate"
    FLAT = "flat"


_FIELD_FOR: dict[Dimension, str] = {
    Dimension.USAGE: "usages",
    Dimension.CATALOG: "catalogs",
    Dimension.FLEET: "fleets",
    Dimension.PLATFORM: "platforms",
    Dimension.ROOM: "rooms",
    Dimension.MANIFEST: "manifests",
    Dimension.SOFTWARE_REPO: "software_repos",
    Dimension.AGENT_VERSION: "agent_versions",
    Dimension.DEVICE_STATUS: "device_statuses",
    Dimension.INSTALL_STATUS: "install_statuses",
}


def _dedupe(values: Any) -> tuple[Any, ...]:
    seen: set[Any] = set()
    out: list[Any] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return tuple(out)


class FilterState(BaseModel):
    """
    Current facet selections. Never mutated: every change returns a new
    instance, so a recompute is a pure function of (dataset, FilterState).

    Within a dimension selections are OR-ed, across dimensions AND-ed.
    An empty selection leaves the dimension unfiltered.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    usages: tuple[str, ...] = ()
    catalogs: tuple[str, ...] = ()
    fleets: tuple[str, ...] = ()
    platforms: tuple[str, ...] = ()
    rooms: tuple[str, ...] = ()
    manifests: tuple[str, ...] = ()
    software_repos: tuple[str, ...] = ()
    agent_versions: tuple[str, ...] = ()
    device_statuses: tuple[DeviceBucket, ...] = ()
    install_statuses: tuple[StatusCategory, ...] = ()
    search: str = ""
    report_mode: ReportMode = Field(default=ReportMode.AGGREGATE)

    def selection(self, dimension: Dimension) -> tuple[str, ...]:
        return tuple(str(getattr(v, "value", v)) for v in getattr(self, _FIELD_FOR[dimension]))

    def is_active(self, dimension: Dimension) -> bool:
        return bool(getattr(self, _FIELD_FOR[dimension]))

    @property
    def active_dimensions(self) -> tuple[Dimension, ...]:
        return tuple(d for d in Dimension if self.is_active(d))

    @property
    def is_empty(self) -> bool:
        return not self.active_dimensions and not self.search.strip()

    def with_selection(self, dimension: Dimension, values: Any) -> FilterState:
        if dimension is Dimension.DEVICE_STATUS:
            coerced: tuple[Any, ...] = tuple(DeviceBucket(v) for v in values)
        elif dimension is Dimension.INSTALL_STATUS:
            coerced = tuple(StatusCategory(v) for v in values)
        else:
            coerced = tuple(str(v) for v in values)
        return self.model_copy(update={_FIELD_FOR[dimension]: _dedupe(coerced)})

    def toggled(self, dimension: Dimension, value: str) -> FilterState:
        current = list(self.selection(dimension))
        if value in current:
            current.remove(value)
        else:
            current.append(value)
        return self.with_selection(dimension, current)

    def without(self, dimension: Dimension) -> FilterState:
        return self.model_copy(update={_FIELD_FOR[dimension]: ()})

    def with_search(self, query: str) -> FilterState:
        return self.model_copy(update={"search": str(query or "")})

    def with_report_mode(self, mode: ReportMode) -> FilterState:
        return self.model_copy(update={"report_mode": ReportMode(mode)})

    def cleared(self) -> FilterState:
        """All selections and search dropped; the report mode is kept."""
        return FilterState(report_mode=self.report_mode)
