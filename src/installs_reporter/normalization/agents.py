"""Adapters for the two install-manager payload shapes (Cimian on Windows, Munki on macOS).

Each adapter reads ``modules.installs.<key>`` of a raw device and produces
canonical :class:`InstallItem` values plus the agent configuration. Shape
differences are absorbed here and nowhere else.
"""

import logging
from typing import Any, ClassVar

from ..models.records import ConfigType, InstallItem
from ..primitives import first_text, safe_dict, safe_list

logger = logging.getLogger(__name__)


class AgentAdapter:
    source: ClassVar[str]
    config_type: ClassVar[ConfigType]
    module_key: ClassVar[str]
    default_platform: ClassVar[str]

    name_keys: ClassVar[tuple[str, ...]]
    status_keys: ClassVar[tuple[str, ...]]
    latest_version_keys: ClassVar[tuple[str, ...]]
    installed_version_keys: ClassVar[tuple[str, ...]] = ("installedVersion", "installed_version")
    update_keys: ClassVar[tuple[str, ...]] = ("lastUpdate", "lastAttemptTime", "last_update")
    type_keys: ClassVar[tuple[str, ...]] = ("type", "itemType", "group")

    def module(self, device: dict[str, Any]) -> dict[str, Any]:
        installs = safe_dict(safe_dict(device.get("modules")).get("installs"))
        return safe_dict(installs.get(self.module_key))

    def has_data(self, module: dict[str, Any]) -> bool:
        return bool(safe_list(module.get("items"))) or any(self.read_config(module).values())

    def read_items(self, module: dict[str, Any], internal_items: frozenset[str] = frozenset()) -> list[InstallItem]:
        items: list[InstallItem] = []
        for raw in safe_list(module.get("items")):
            if not isinstance(raw, dict):
                logger.warning("%s: skipping non-mapping install item %r", self.source, raw)
                continue
            name = first_text(raw, *self.name_keys)
            if name is None:
                logger.warning("%s: skipping install item without a name", self.source)
                continue
            item_type = first_text(raw, *self.type_keys)
            if name in internal_items or (item_type is not None and item_type in internal_items):
                continue
            items.append(
                InstallItem(
                    item_name=name,
                    current_status=first_text(raw, *self.status_keys) or "",
                    latest_version=first_text(raw, *self.latest_version_keys),
                    installed_version=first_text(raw, *self.installed_version_keys),
                    last_update=first_text(raw, *self.update_keys),
                    last_error=first_text(raw, "lastError", "last_error"),
                    last_warning=first_text(raw, "lastWarning", "last_warning"),
                )
            )
        return items

    def read_config(self, module: dict[str, Any]) -> dict[str, str | None]:
        raise NotImplementedError


class CimianAdapter(AgentAdapter):
    source = "cimian"
    config_type = ConfigType.CIMIAN
    module_key = "cimian"
    default_platform = "Windows"

    name_keys = ("itemName", "displayName", "name")
    status_keys = ("currentStatus", "status")
    latest_version_keys = ("latestVersion", "version")

    def read_config(self, module: dict[str, Any]) -> dict[str, str | None]:
        config = safe_dict(module.get("config"))
        return {
            "client_identifier": first_text(config, "ClientIdentifier", "clientIdentifier"),
            "software_repo_url": first_text(config, "SoftwareRepoURL", "softwareRepoURL"),
            "version": first_text(module, "version"),
        }


class MunkiAdapter(AgentAdapter):
    source = "munki"
    config_type = ConfigType.MUNKI
    module_key = "munki"
    default_platform = "Macintosh"

    name_keys = ("name", "displayName", "itemName")
    status_keys = ("status", "currentStatus")
    latest_version_keys = ("version", "latestVersion")

    def read_config(self, module: dict[str, Any]) -> dict[str, str | None]:
        return {
            "client_identifier": first_text(module, "manifestName", "clientIdentifier"),
            "software_repo_url": first_text(module, "softwareRepoURL", "softwareRepoUrl"),
            "version": first_text(module, "version"),
        }


# Preference order when both agents report the same logical field.
ADAPTERS: tuple[AgentAdapter, ...] = (CimianAdapter(), MunkiAdapter())
