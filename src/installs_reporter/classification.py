"""Status classification and device health bucketing."""

import logging
from datetime import datetime
from typing import Any

from .date_utils import hours_since, utc_now
from .models.records import DeviceBucket, StatusCategory

logger = logging.getLogger(__name__)

# Checked top to bottom, first match wins: failure states dominate.
_STATUS_RULES: tuple[tuple[StatusCategory, tuple[str, ...], tuple[str, ...]], ...] = (
    (StatusCategory.ERROR, ("error", "failed"), ("needs_reinstall",)),
    (StatusCategory.WARNING, ("warning",), ("needs-attention", "managed-update-available")),
    (StatusCategory.REMOVED, ("will-be-removed", "removal-requested"), ()),
    (
        StatusCategory.PENDING,
        ("will-be-installed", "update-available", "update_available", "pending", "scheduled"),
        (),
    ),
)

# Strings that map to installed on purpose rather than by fallback.
_KNOWN_INSTALLED = frozenset({"installed", "success", "up-to-date", "up_to_date", "current", "ok"})


def _match(status: str) -> StatusCategory | None:
    for category, contains, equals in _STATUS_RULES:
        if status in equals or any(token in status for token in contains):
            return category
    return None


def classify_status(raw_status: Any) -> StatusCategory:
    """
    Map a raw agent status string to exactly one StatusCategory.

    Case-insensitive. Precedence is error > warning > removed > pending,
    anything else (including empty or unknown strings) is ``installed``.

    >>> classify_status("update-available-error").value
    'error'
    >>> classify_status("Will-Be-Installed").value
    'pending'
    """
    status = str(raw_status or "").strip().lower()
    category = _match(status)
    if category is not None:
        return category
    if status and status not in _KNOWN_INSTALLED:
        logger.debug("Unrecognised install status %r treated as installed", raw_status)
    return StatusCategory.INSTALLED


def is_recognized_status(raw_status: Any) -> bool:
    """True when *raw_status* matches a rule or a known installed spelling."""
    status = str(raw_status or "").strip().lower()
    return _match(status) is not None or status in _KNOWN_INSTALLED


def bucket_device_status(
    last_seen: Any,
    now: datetime | None = None,
    active_hours: float = 24.0,
    stale_hours: float = 168.0,
) -> DeviceBucket:
    """Health bucket for a last-contact timestamp; unparseable or missing is ``missing``."""
    elapsed = hours_since(last_seen, now or utc_now())
    if elapsed is None:
        return DeviceBucket.MISSING
    if elapsed <= active_hours:
        return DeviceBucket.ACTIVE
    if elapsed <= stale_hours:
        return DeviceBucket.STALE
    return DeviceBucket.MISSING
