from .filters import Dimension, FilterState, ReportMode
from .records import (
    DEVICE_BUCKET_ORDER,
    STATUS_PRECEDENCE,
    ConfigType,
    DeviceBucket,
    DeviceConfigSummary,
    FleetDataset,
    InstallItem,
    InstallRecord,
    NormalizedDevice,
    StatusCategory,
)
from .settings import ReporterSettings

__all__ = [
    "DEVICE_BUCKET_ORDER",
    "STATUS_PRECEDENCE",
    "ConfigType",
    "DeviceBucket",
    "DeviceConfigSummary",
    "Dimension",
    "FilterState",
    "FleetDataset",
    "InstallItem",
    "InstallRecord",
    "NormalizedDevice",
    "ReportMode",
    "ReporterSettings",
    "StatusCategory",
]
