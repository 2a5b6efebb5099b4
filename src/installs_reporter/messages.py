"""Fleet-wide install error/warning message aggregation and device categorisation."""

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any, Literal

from .models.records import DeviceConfigSummary
from .models.settings import ReporterSettings
from .normalization.agents import CimianAdapter, MunkiAdapter
from .normalization.inventory import read_inventory
from .primitives import UNKNOWN, first_text, safe_list

logger = logging.getLogger(__name__)

MessageKind = Literal["error", "warning"]

_MUNKI_SPLIT = {
    "error": re.compile(r"ERROR:|[\n\r]+"),
    "warning": re.compile(r"WARNING:|[\n\r]+"),
}

_CIMIAN = CimianAdapter()
_MUNKI = MunkiAdapter()


def _munki_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value if v is not None)
    return str(value) if value is not None else ""


def _split_munki(text: str, kind: MessageKind) -> list[str]:
    return [part.strip() for part in _MUNKI_SPLIT[kind].split(text) if part.strip()]


class _MessageIndex:
    def __init__(self, kind: MessageKind) -> None:
        self.kind = kind
        self._entries: dict[str, dict[str, Any]] = {}

    def add(self, message: str, source: str, device: dict[str, Any]) -> None:
        entry = self._entries.get(message)
        if entry is None:
            entry = {"message": message, "count": 0, "devices": [], "type": self.kind, "source": source}
            self._entries[message] = entry
        entry["count"] += 1
        entry["devices"].append(device)

    def results(self) -> list[dict[str, Any]]:
        return sorted(self._entries.values(), key=lambda e: (-e["count"], e["message"]))


def _live_devices(devices: Any, settings: ReporterSettings) -> Iterable[dict[str, Any]]:
    for device in safe_list(devices):
        if not isinstance(device, dict):
            continue
        if settings.skip_archived and device.get("archived") is True:
            continue
        yield device


def _identity(device: dict[str, Any]) -> tuple[str, str]:
    serial = first_text(device, "serialNumber", "deviceId") or UNKNOWN
    name = read_inventory(device)["device_name"] or first_text(device, "serialNumber") or UNKNOWN
    return serial, name


def aggregate_install_messages(
    devices: Any,
    kind: MessageKind,
    settings: ReporterSettings | None = None,
) -> list[dict[str, Any]]:
    """
    Group identical error or warning messages across the fleet.

    Cimian contributes each item's ``lastError``/``lastWarning``; Munki
    contributes its device-level ``errors``/``warnings`` text split into
    individual messages, and ``problemInstalls`` as a warning. Result is
    sorted by count (most common first), then message.
    """
    if kind not in _MUNKI_SPLIT:
        raise ValueError(f"kind must be 'error' or 'warning', got {kind!r}")
    settings = settings or ReporterSettings()
    internal = frozenset(settings.internal_items)
    index = _MessageIndex(kind)

    for device in _live_devices(devices, settings):
        serial, name = _identity(device)

        for item in _CIMIAN.read_items(_CIMIAN.module(device), internal):
            text = item.last_error if kind == "error" else item.last_warning
            if text:
                index.add(
                    text,
                    "cimian",
                    {
                        "serial_number": serial,
                        "device_name": name,
                        "item_name": item.item_name,
                        "timestamp": item.last_update,
                    },
                )

        munki = _MUNKI.module(device)
        if not munki:
            continue
        affected = {"serial_number": serial, "device_name": name, "timestamp": first_text(munki, "endTime")}
        raw = munki.get("errors" if kind == "error" else "warnings")
        for message in _split_munki(_munki_text(raw), kind):
            index.add(message, "munki", dict(affected))
        if kind == "warning":
            problems = _munki_text(munki.get("problemInstalls")).strip()
            if problems:
                index.add(f"Problem installs: {problems}", "munki", dict(affected))

    return index.results()


def messages_for_item(
    devices: Any,
    item_name: str,
    kind: MessageKind,
    settings: ReporterSettings | None = None,
) -> list[dict[str, Any]]:
    """Error or warning messages reported for one managed item (matched case-insensitively)."""
    if kind not in _MUNKI_SPLIT:
        raise ValueError(f"kind must be 'error' or 'warning', got {kind!r}")
    settings = settings or ReporterSettings()
    internal = frozenset(settings.internal_items)
    wanted = item_name.casefold()
    index = _MessageIndex(kind)

    for device in _live_devices(devices, settings):
        serial, name = _identity(device)
        for item in _CIMIAN.read_items(_CIMIAN.module(device), internal):
            if item.item_name.casefold() != wanted:
                continue
            text = item.last_error if kind == "error" else item.last_warning
            if text:
                index.add(
                    text,
                    "cimian",
                    {
                        "serial_number": serial,
                        "device_name": name,
                        "item_name": item.item_name,
                        "timestamp": item.last_update,
                    },
                )
    return index.results()


def categorize_devices(summaries: Sequence[DeviceConfigSummary]) -> dict[str, list[DeviceConfigSummary]]:
    """
    Split devices by install health. Errors, warnings and pending overlap
    (a device with errors may also have pending items); healthy devices
    have none of the three. Scheduled removals count as pending.
    """
    groups: dict[str, list[DeviceConfigSummary]] = {"errors": [], "warnings": [], "pending": [], "healthy": []}
    for summary in summaries:
        has_error = summary.error_count > 0
        has_warning = summary.warning_count > 0
        has_pending = summary.pending_count + summary.removed_count > 0
        if has_error:
            groups["errors"].append(summary)
        if has_warning:
            groups["warnings"].append(summary)
        if has_pending:
            groups["pending"].append(summary)
        if not (has_error or has_warning or has_pending):
            groups["healthy"].append(summary)
    return groups
