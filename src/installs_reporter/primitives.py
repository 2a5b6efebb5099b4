from typing import Any

"""Defensive readers shared by the normalizer, sources and view builders."""

UNKNOWN = "Unknown"


def safe_list(value: Any) -> list[Any]:
    if isinstance(value, (str, dict)):
        return []
    try:
        return list(value or [])
    except (TypeError, ValueError):
        return []


def safe_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def text_or_none(value: Any) -> str | None:
    """Return a stripped string, or None for missing/blank/non-scalar values."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    text = str(value).strip()
    return text or None


def first_text(mapping: Any, *keys: str) -> str | None:
    """First non-blank string among *keys* of *mapping*.

    >>> first_text({"itemName": "", "name": "Chrome"}, "itemName", "name")
    'Chrome'
    """
    data = safe_dict(mapping)
    for key in keys:
        text = text_or_none(data.get(key))
        if text is not None:
            return text
    return None


def text_or_unknown(value: Any) -> str:
    return text_or_none(value) or UNKNOWN


def casefold_key(value: Any) -> tuple[str, str]:
    """Sort key: case-insensitive first, original text as tie-break."""
    text = "" if value is None else str(value)
    return text.casefold(), text
