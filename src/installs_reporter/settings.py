"""Locate and load reporter settings (thresholds, internal item names)."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import SettingsError
from .models.settings import ReporterSettings

logger = logging.getLogger(__name__)

_LOCAL_SETTINGS = Path("installs_reporter.yaml")
_USER_SETTINGS = Path.home() / ".config" / "installs_reporter" / "config.yaml"


def _read_settings(path: Path) -> ReporterSettings:
    with open(path) as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"expected a mapping, got {type(raw).__name__}")
    return ReporterSettings.model_validate(raw)


def load_settings(explicit_path: str | Path | None = None) -> ReporterSettings:
    """Load settings from the first usable file, falling back to built-in defaults.

    An explicit path must exist and validate; implicit candidates
    (``./installs_reporter.yaml``, ``~/.config/installs_reporter/config.yaml``)
    are skipped with a warning when unreadable.
    """
    if explicit_path:
        path = Path(explicit_path)
        if not path.is_file():
            raise SettingsError(f"Settings file not found: {path}")
        try:
            settings = _read_settings(path)
        except (OSError, ValueError, yaml.YAMLError, ValidationError) as exc:
            raise SettingsError(f"Invalid settings file {path}: {exc}") from exc
        logger.info("Loaded settings from %s", path)
        return settings

    for path in (_LOCAL_SETTINGS, _USER_SETTINGS):
        if not path.is_file():
            continue
        try:
            settings = _read_settings(path)
        except (OSError, ValueError, yaml.YAMLError, ValidationError) as exc:
            logger.warning("Failed to load settings %s: %s", path, exc)
            continue
        logger.info("Loaded settings from %s", path)
        return settings
    return ReporterSettings()
