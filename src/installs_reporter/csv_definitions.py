from typing import Any

"""Declarative CSV column definitions per report mode.

Column order is positional API for downstream consumers; append new columns
at the end and bump ``COLUMNS_VERSION`` when changing it.
"""

COLUMNS_VERSION = 1

CSV_DEFINITIONS: list[dict[str, Any]] = [
    {
        "report_name": "installs_generated_report",
        "mode": "flat",
        "headers": [
            "Device",
            "Serial",
            "Item",
            "Version",
            "Status",
            "Source",
            "Platform",
            "Usage",
            "Catalog",
            "Room",
            "Fleet",
            "Last Seen",
        ],
        "key_map": {
            "Device": "device_name",
            "Serial": "serial_number",
            "Item": "name",
        },
    },
    {
        "report_name": "installs_config_report",
        "mode": "aggregate",
        "headers": [
            "Device",
            "Serial",
            "Asset Tag",
            "System",
            "Version",
            "Manifest",
            "Repo",
            "Total Items",
            "Installed",
            "Pending",
            "Errors",
            "Warnings",
            "Removed",
            "Last Seen",
        ],
        "key_map": {
            "Device": "device_name",
            "Serial": "serial_number",
            "System": "platform",
            "Manifest": "client_identifier",
            "Repo": "software_repo_url",
            "Total Items": "total_packages_managed",
            "Installed": "installed_count",
            "Pending": "pending_count",
            "Errors": "error_count",
            "Warnings": "warning_count",
            "Removed": "removed_count",
        },
    },
]


def get_definition(mode: str) -> dict[str, Any]:
    """Return the CSV definition for a report mode ("flat" or "aggregate")."""
    for definition in CSV_DEFINITIONS:
        if definition["mode"] == mode:
            return definition
    raise KeyError(f"no CSV definition for mode {mode!r}")
