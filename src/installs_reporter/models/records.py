"""Canonical install shapes produced by the normalizer."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StatusCategory(str, Enum):
    INSTALLED = "installed"
    PENDING = "pending"
    WARNING = "warning"
    ERROR = "error"
    REMOVED = "removed"


# Classification precedence; also the display order of status facets.
STATUS_PRECEDENCE: tuple[StatusCategory, ...] = (
    StatusCategory.ERROR,
    StatusCategory.WARNING,
    StatusCategory.REMOVED,
    StatusCategory.PENDING,
    StatusCategory.INSTALLED,
)


class DeviceBucket(str, Enum):
    ACTIVE = "active"
    STALE = "stale"
    MISSING = "missing"


DEVICE_BUCKET_ORDER: tuple[DeviceBucket, ...] = (DeviceBucket.ACTIVE, DeviceBucket.STALE, DeviceBucket.MISSING)


class ConfigType(str, Enum):
    CIMIAN = "Cimian"
    MUNKI = "Munki"
    NONE = "None"


class InstallItem(BaseModel):
    """One managed item as reported by an agent, before classification."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    item_name: str
    current_status: str = ""
    latest_version: str | None = None
    installed_version: str | None = None
    last_update: str | None = None
    last_error: str | None = None
    last_warning: str | None = None


class InstallRecord(BaseModel):
    """One row of the generated (flat) report: a device x managed item pair."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    serial_number: str
    device_name: str
    asset_tag: str | None = None
    last_seen: str | None = None
    name: str
    version: str | None = None
    status: StatusCategory
    raw_status: str = ""
    source: Literal["cimian", "munki"]
    usage: str | None = None
    catalog: str | None = None
    room: str | None = None
    fleet: str | None = None
    platform: str | None = None
    manifest: str | None = None
    software_repo: str | None = None
    agent_version: str | None = None


class DeviceConfigSummary(BaseModel):
    """One row of the config (aggregate) report: per-device agent config and status counters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    device_id: str
    serial_number: str
    device_name: str
    asset_tag: str | None = None
    usage: str
    catalog: str
    room: str
    fleet: str
    platform: str
    last_seen: str | None = None
    config_type: ConfigType
    client_identifier: str
    software_repo_url: str
    version: str
    total_packages_managed: int = 0
    installed_count: int = 0
    pending_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    removed_count: int = 0

    @property
    def category_sum(self) -> int:
        return (
            self.installed_count + self.pending_count + self.error_count + self.warning_count + self.removed_count
        )

    def count_for(self, category: StatusCategory) -> int:
        return int(getattr(self, f"{category.value}_count"))


class NormalizedDevice(BaseModel):
    """Everything one raw device contributes to the two report collections."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: tuple[InstallRecord, ...] = ()
    summary: DeviceConfigSummary


class FleetDataset(BaseModel):
    """A complete, immutable normalized snapshot of the fleet.

    ``summaries`` holds every device (including ``ConfigType.NONE``);
    ``config_rows`` is the aggregate-mode collection with those excluded.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: tuple[InstallRecord, ...] = ()
    summaries: tuple[DeviceConfigSummary, ...] = ()
    skipped_devices: int = Field(default=0, ge=0)

    @property
    def config_rows(self) -> tuple[DeviceConfigSummary, ...]:
        return tuple(s for s in self.summaries if s.config_type is not ConfigType.NONE)

    def records_for_items(self, item_names: tuple[str, ...] | list[str]) -> tuple[InstallRecord, ...]:
        wanted = set(item_names)
        return tuple(r for r in self.records if r.name in wanted)
