"""Flatten raw device payloads into InstallRecord / DeviceConfigSummary collections."""

import logging
from typing import Any

from ..classification import classify_status
from ..errors import MalformedInputError
from ..models.records import (
    ConfigType,
    DeviceConfigSummary,
    FleetDataset,
    InstallRecord,
    NormalizedDevice,
    StatusCategory,
)
from ..models.settings import ReporterSettings
from ..primitives import UNKNOWN, first_text, safe_list
from .agents import ADAPTERS
from .inventory import infer_platform, read_inventory

logger = logging.getLogger(__name__)


def _first_config(configs: list[dict[str, str | None]], key: str) -> str | None:
    for config in configs:
        if config.get(key):
            return config[key]
    return None


def normalize_device(raw: Any, settings: ReporterSettings | None = None) -> NormalizedDevice:
    """
    Normalize one raw device.

    Returns every managed item of every reporting agent as an InstallRecord
    and exactly one DeviceConfigSummary (``config_type`` ``None`` when no
    agent reports data). Missing attributes become ``"Unknown"``; only a
    payload without any identity raises MalformedInputError.
    """
    settings = settings or ReporterSettings()
    if not isinstance(raw, dict):
        raise MalformedInputError(f"device payload must be a mapping, got {type(raw).__name__}")

    serial = first_text(raw, "serialNumber", "serial_number")
    device_id = first_text(raw, "deviceId", "device_id", "id")
    if serial is None and device_id is None:
        raise MalformedInputError("device payload has neither serialNumber nor deviceId")
    serial = serial or device_id or UNKNOWN
    device_id = device_id or serial

    inventory = read_inventory(raw)
    device_name = inventory["device_name"] or first_text(raw, "deviceName", "name") or serial
    last_seen = first_text(raw, "lastSeen", "last_seen")
    internal = frozenset(settings.internal_items)

    reporting = []
    for adapter in ADAPTERS:
        module = adapter.module(raw)
        if module and adapter.has_data(module):
            reporting.append((adapter, module))

    agent_default = reporting[0][0].default_platform if reporting else None
    platform = infer_platform(raw, inventory["platform"], agent_default)

    records: list[InstallRecord] = []
    configs: list[dict[str, str | None]] = []
    counts = {category: 0 for category in StatusCategory}
    for adapter, module in reporting:
        config = adapter.read_config(module)
        configs.append(config)
        for item in adapter.read_items(module, internal):
            status = classify_status(item.current_status)
            counts[status] += 1
            records.append(
                InstallRecord(
                    device_id=device_id,
                    serial_number=serial,
                    device_name=device_name,
                    asset_tag=inventory["asset_tag"],
                    last_seen=last_seen,
                    name=item.item_name,
                    version=item.latest_version or item.installed_version,
                    status=status,
                    raw_status=item.current_status,
                    source=adapter.source,
                    usage=inventory["usage"],
                    catalog=inventory["catalog"],
                    room=inventory["room"],
                    fleet=inventory["fleet"],
                    platform=platform,
                    manifest=config["client_identifier"],
                    software_repo=config["software_repo_url"],
                    agent_version=config["version"],
                )
            )

    summary = DeviceConfigSummary(
        device_id=device_id,
        serial_number=serial,
        device_name=device_name,
        asset_tag=inventory["asset_tag"],
        usage=inventory["usage"] or UNKNOWN,
        catalog=inventory["catalog"] or UNKNOWN,
        room=inventory["room"] or UNKNOWN,
        fleet=inventory["fleet"] or UNKNOWN,
        platform=platform,
        last_seen=last_seen,
        config_type=reporting[0][0].config_type if reporting else ConfigType.NONE,
        client_identifier=_first_config(configs, "client_identifier") or UNKNOWN,
        software_repo_url=_first_config(configs, "software_repo_url") or UNKNOWN,
        version=_first_config(configs, "version") or UNKNOWN,
        total_packages_managed=len(records),
        installed_count=counts[StatusCategory.INSTALLED],
        pending_count=counts[StatusCategory.PENDING],
        error_count=counts[StatusCategory.ERROR],
        warning_count=counts[StatusCategory.WARNING],
        removed_count=counts[StatusCategory.REMOVED],
    )
    if summary.category_sum != summary.total_packages_managed:
        logger.error(
            "Category counts for %s sum to %d, expected %d",
            serial,
            summary.category_sum,
            summary.total_packages_managed,
        )
    return NormalizedDevice(records=tuple(records), summary=summary)


def normalize_fleet(devices: Any, settings: ReporterSettings | None = None) -> FleetDataset:
    """Normalize a full device list into one immutable snapshot; bad devices are logged and skipped."""
    settings = settings or ReporterSettings()
    if devices is not None and not isinstance(devices, (list, tuple)):
        logger.warning("Device list must be a sequence, got %s; using an empty dataset", type(devices).__name__)
        devices = []

    records: list[InstallRecord] = []
    summaries: list[DeviceConfigSummary] = []
    skipped = 0
    for raw in safe_list(devices):
        if settings.skip_archived and isinstance(raw, dict) and raw.get("archived") is True:
            logger.debug("Skipping archived device %s", first_text(raw, "serialNumber", "deviceId"))
            continue
        try:
            normalized = normalize_device(raw, settings)
        except MalformedInputError as exc:
            logger.warning("Skipping malformed device: %s", exc)
            skipped += 1
            continue
        records.extend(normalized.records)
        summaries.append(normalized.summary)

    logger.debug("Normalized %d devices into %d install records (%d skipped)", len(summaries), len(records), skipped)
    return FleetDataset(records=tuple(records), summaries=tuple(summaries), skipped_devices=skipped)
