"""Shared CLI helpers for report commands."""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

logger = logging.getLogger(__name__)

_VIEW_MODEL_KEYS = {"report_stamp", "report_date", "report_id"}


# ---------------------------------------------------------------------------
# Cached Jinja environment
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1)
def get_jinja_env() -> Environment:
    """Return a cached Jinja2 Environment for the plain-text report templates."""
    template_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["pct"] = _pct
    return env


def _pct(part: Any, whole: Any) -> str:
    try:
        whole_f = float(whole)
        return f"{(float(part) / whole_f) * 100.0:.1f}%" if whole_f else "0.0%"
    except (TypeError, ValueError):
        return "0.0%"


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def generate_timestamps(report_stamp: str | None = None) -> dict[str, Any]:
    """Build the timestamp strings stamped onto every view."""
    now = datetime.now(tz=timezone.utc)
    return {
        "report_stamp": report_stamp or now.strftime("%Y%m%d"),
        "report_date": now.strftime("%Y-%m-%d %H:%M:%S"),
        "report_id": now.strftime("%Y%m%dT%H%M%SZ"),
    }


def vm_kwargs(common_vars: dict[str, Any]) -> dict[str, Any]:
    """Extract only the keys accepted by view-model builder functions."""
    return {k: v for k, v in common_vars.items() if k in _VIEW_MODEL_KEYS}
