"""Raw device payload factories shaped like the upstream device API."""

from datetime import datetime, timedelta, timezone
from typing import Any

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(hours_ago: float | None) -> str | None:
    if hours_ago is None:
        return None
    return (NOW - timedelta(hours=hours_ago)).strftime("%Y-%m-%dT%H:%M:%SZ")


def cimian_item(name: str, status: str, version: str = "1.0", **extra: Any) -> dict[str, Any]:
    item = {"itemName": name, "currentStatus": status, "latestVersion": version, "installedVersion": version}
    item.update(extra)
    return item


def munki_item(name: str, status: str, version: str = "1.0", **extra: Any) -> dict[str, Any]:
    item = {"name": name, "status": status, "version": version, "installedVersion": version}
    item.update(extra)
    return item


def _inventory(usage, catalog, location, fleet, device_name, asset_tag) -> dict[str, Any]:
    inv = {"usage": usage, "catalog": catalog, "location": location, "fleet": fleet}
    if device_name:
        inv["deviceName"] = device_name
    if asset_tag:
        inv["assetTag"] = asset_tag
    return inv


def cimian_device(
    serial: str,
    items: list[dict[str, Any]],
    *,
    usage: str = "Staff",
    catalog: str = "Production",
    location: str = "Room 101",
    fleet: str = "Alpha",
    hours_ago: float | None = 1,
    device_name: str | None = None,
    asset_tag: str | None = None,
    client_identifier: str = "Assigned/Staff",
    repo: str = "https://cimian.example.org/deployment",
    version: str = "2025.06.01.1200",
    **extra: Any,
) -> dict[str, Any]:
    device = {
        "serialNumber": serial,
        "deviceId": f"id-{serial}",
        "lastSeen": iso(hours_ago),
        "modules": {
            "inventory": _inventory(usage, catalog, location, fleet, device_name, asset_tag),
            "system": {"operatingSystem": {"platform": "Windows NT"}},
            "installs": {
                "cimian": {
                    "items": items,
                    "config": {"ClientIdentifier": client_identifier, "SoftwareRepoURL": repo},
                    "version": version,
                }
            },
        },
    }
    device.update(extra)
    return device


def munki_device(
    serial: str,
    items: list[dict[str, Any]],
    *,
    usage: str = "Staff",
    catalog: str = "Production",
    location: str = "Room 101",
    fleet: str = "Alpha",
    hours_ago: float | None = 1,
    device_name: str | None = None,
    asset_tag: str | None = None,
    manifest: str = "site_default",
    repo: str = "https://munki.example.org/repo",
    version: str = "6.5.1",
    errors: str = "",
    warnings: str = "",
    problem_installs: str = "",
    **extra: Any,
) -> dict[str, Any]:
    device = {
        "serialNumber": serial,
        "deviceId": f"id-{serial}",
        "lastSeen": iso(hours_ago),
        "modules": {
            "inventory": _inventory(usage, catalog, location, fleet, device_name, asset_tag),
            "system": {"operatingSystem": {"platform": "Darwin"}},
            "installs": {
                "munki": {
                    "items": items,
                    "manifestName": manifest,
                    "softwareRepoURL": repo,
                    "version": version,
                    "errors": errors,
                    "warnings": warnings,
                    "problemInstalls": problem_installs,
                    "endTime": iso(hours_ago),
                }
            },
        },
    }
    device.update(extra)
    return device


def sample_fleet() -> list[Any]:
    """Mixed fleet: two Windows, one Mac, one device without agent data, one archived, one malformed."""
    return [
        cimian_device(
            "W001",
            [
                cimian_item("Chrome", "Installed", "120.0"),
                cimian_item(
                    "Firefox",
                    "Install Error: timeout",
                    "115.2",
                    lastError="Download timed out",
                    lastUpdate=iso(3),
                ),
                cimian_item("Zoom", "update-available", "5.17"),
            ],
            usage="Engineering Lab",
            catalog="Production",
            location="Room 101",
            fleet="Alpha",
            hours_ago=2,
            device_name="ENG-PC-01",
            asset_tag="A-100",
        ),
        cimian_device(
            "W002",
            [
                cimian_item("Chrome", "Warning", "119.0", lastWarning="Restart required"),
                cimian_item("Office", "will-be-removed", "16.0"),
                cimian_item("managed_apps", "Installed"),
                cimian_item("CimianProfile", "Installed", type="managed_profiles"),
            ],
            usage="Staff",
            catalog="Testing",
            location="Room 202",
            fleet="Beta",
            hours_ago=50,
            device_name="STAFF-PC-02",
        ),
        munki_device(
            "M001",
            [
                munki_item("Chrome", "installed", "120.0"),
                munki_item("Slack", "will-be-installed", "4.36"),
            ],
            usage="engineering",
            catalog="production",
            location="Lab",
            fleet="Alpha",
            hours_ago=200,
            device_name="ENG-MAC-01",
            errors="ERROR: Download failed\nERROR: Checksum mismatch",
            warnings="WARNING: Low disk space",
            problem_installs="Slack",
        ),
        {
            "serialNumber": "N001",
            "deviceId": "id-N001",
            "lastSeen": None,
            "modules": {"inventory": "@{usage=Kiosk; catalog=Production; location=Lobby; department=Front Desk}"},
        },
        cimian_device("X001", [cimian_item("Chrome", "Installed")], archived=True),
        "not a device",
    ]
