"""Timestamp parsing helpers for device last-seen and item update times."""

import re
from datetime import datetime, timezone
from typing import Any

_ISO_RE = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})T(\d{2}:\d{2}:\d{2})")
# fromisoformat before 3.11 rejects a trailing Z and 7-digit fractions (.NET style)
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def parse_iso_datetime(raw: Any) -> datetime | None:
    """
    Parse an ISO-ish timestamp into an aware datetime (UTC when no offset is given).
    Accepts datetimes, YYYY-MM-DDTHH:MM:SS, YYYY-MM-DD HH:MM:SS, and variants
    with fractions/offsets/Z. Returns None if unparseable.
    """
    if isinstance(raw, datetime):
        return raw if raw.tzinfo is not None else raw.replace(tzinfo=timezone.utc)
    if not isinstance(raw, str) or not raw.strip():
        return None

    clean = raw.strip().replace(" ", "T")
    if clean.endswith("Z"):
        clean = clean[:-1] + "+00:00"
    clean = _FRACTION_RE.sub(r".\1", clean)

    try:
        dt = datetime.fromisoformat(clean)
    except ValueError:
        match = _ISO_RE.match(clean)
        if not match:
            return None
        try:
            dt = datetime.strptime(f"{match.group(1)} {match.group(2)}", "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def hours_since(raw: Any, now: datetime) -> float | None:
    """Hours elapsed between *raw* and *now*, or None when *raw* is unparseable."""
    parsed = parse_iso_datetime(raw)
    if parsed is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - parsed).total_seconds() / 3600.0


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)
