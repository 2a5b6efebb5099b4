"""Inventory and system attribute readers for raw device payloads."""

import json
import logging
from typing import Any

from ..primitives import UNKNOWN, first_text, safe_dict

logger = logging.getLogger(__name__)

_PLATFORM_NAMES = {
    "windows nt": "Windows",
    "windows": "Windows",
    "darwin": "Macintosh",
    "macos": "Macintosh",
    "macintosh": "Macintosh",
}


def parse_powershell_hashtable(text: str) -> dict[str, Any]:
    """Parse ``@{key=value; key2=value2}`` into a flat mapping.

    >>> parse_powershell_hashtable("@{usage=Staff; catalog=Production}")
    {'usage': 'Staff', 'catalog': 'Production'}
    """
    body = text.strip()
    if not (body.startswith("@{") and body.endswith("}")):
        raise ValueError("not a PowerShell hashtable")
    result: dict[str, Any] = {}
    for pair in body[2:-1].split(";"):
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            continue
        value = value.strip()
        result[key.strip()] = None if value.lower() == "$null" or not value else value
    return result


def parse_inventory(raw: Any) -> dict[str, Any]:
    """Inventory module as a mapping; strings are parsed as JSON or PowerShell, else ``{}``."""
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return {}
    text = raw.strip()
    if text.startswith("@{"):
        try:
            return parse_powershell_hashtable(text)
        except ValueError:
            logger.warning("Unparseable PowerShell inventory payload: %.60s", text)
            return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Unparseable inventory payload: %.60s", text)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def read_inventory(device: dict[str, Any]) -> dict[str, str | None]:
    """Usage/catalog/room/fleet/asset tag/name from the inventory module, with sentinels."""
    modules = safe_dict(device.get("modules"))
    inventory = parse_inventory(modules.get("inventory"))
    return {
        "usage": first_text(inventory, "usage") or UNKNOWN,
        "catalog": first_text(inventory, "catalog") or UNKNOWN,
        "room": first_text(inventory, "location", "room") or UNKNOWN,
        "fleet": first_text(inventory, "fleet", "department") or UNKNOWN,
        "asset_tag": first_text(inventory, "assetTag", "asset_tag") or first_text(device, "assetTag"),
        "device_name": first_text(inventory, "deviceName", "device_name"),
        "platform": first_text(inventory, "platform"),
    }


def infer_platform(device: dict[str, Any], inventory_platform: str | None, agent_default: str | None) -> str:
    """Operating system platform; falls back to inventory, then the reporting agent."""
    system = safe_dict(safe_dict(device.get("modules")).get("system"))
    os_platform = first_text(safe_dict(system.get("operatingSystem")), "platform")
    for candidate in (os_platform, first_text(device, "platform"), inventory_platform):
        if candidate is None:
            continue
        return _PLATFORM_NAMES.get(candidate.lower(), candidate)
    return agent_default or UNKNOWN
