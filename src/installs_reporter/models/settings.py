from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReporterSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Last-contact thresholds for the device health buckets.
    active_hours: float = Field(default=24.0, gt=0)
    stale_hours: float = Field(default=168.0, gt=0)
    # Agent bookkeeping entries that are never reported as managed items.
    internal_items: list[str] = Field(default_factory=lambda: ["managed_apps", "managed_profiles"])
    skip_archived: bool = True

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> "ReporterSettings":
        if self.stale_hours < self.active_hours:
            raise ValueError("stale_hours must be >= active_hours")
        return self
