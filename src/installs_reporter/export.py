"""Sorting and CSV serialization of a filtered report collection.

Nothing here knows about classification or filtering: it consumes rows
exactly as the facet layer produced them.
"""

import csv
import io
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from .csv_definitions import get_definition


class SortState(BaseModel):
    """Single active sort column and direction; ``column`` is a header or a row key."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    column: str | None = None
    descending: bool = False

    def toggle(self, column: str) -> "SortState":
        """Same column flips direction; a new column starts ascending."""
        if column == self.column:
            return SortState(column=column, descending=not self.descending)
        return SortState(column=column, descending=False)


def header_to_key(header: str) -> str:
    """Convert a display header to a snake_case dict key.

    >>> header_to_key("Last Seen")
    'last_seen'
    """
    return re.sub(r"\s+", "_", header.strip()).lower()


def _format_value(value: Any) -> str:
    """Normalize a cell value for CSV output."""
    if isinstance(value, list):
        return "; ".join(str(v) for v in value)
    text = str(value) if value is not None else ""
    return text.replace("\n", " ").replace("\r", "")


def columns_for(mode: str) -> list[tuple[str, str]]:
    """(header, row key) pairs in export order for a report mode."""
    definition = get_definition(str(getattr(mode, "value", mode)))
    key_map = definition.get("key_map", {})
    return [(h, key_map.get(h, header_to_key(h))) for h in definition["headers"]]


def row_dicts(rows: Sequence[Any]) -> list[dict[str, Any]]:
    return [row.model_dump(mode="json") if isinstance(row, BaseModel) else dict(row) for row in rows]


def cell_value(row: Any, key: str) -> Any:
    """Column value of a model or mapping row; enums are reduced to their value."""
    value = row.get(key) if isinstance(row, dict) else getattr(row, key, None)
    return getattr(value, "value", value)


def _resolve_key(column: str, columns: list[tuple[str, str]]) -> str:
    for header, key in columns:
        if column in (header, key):
            return key
    return header_to_key(column)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def sort_rows(rows: Sequence[Any], sort: SortState | None, columns: list[tuple[str, str]]) -> list[Any]:
    """
    Stable sort on one column. Numbers compare numerically, everything else
    case-insensitively; rows without a value keep their order at the end.
    """
    if sort is None or not sort.column:
        return list(rows)
    key = _resolve_key(sort.column, columns)
    present = [r for r in rows if not _is_missing(cell_value(r, key))]
    missing = [r for r in rows if _is_missing(cell_value(r, key))]

    def sort_key(row: Any) -> tuple[int, Any]:
        value = cell_value(row, key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (0, value)
        return (1, str(value).casefold())

    return sorted(present, key=sort_key, reverse=sort.descending) + missing


def to_csv(rows: Sequence[Any], columns: list[tuple[str, str]]) -> str:
    """CSV text for *rows*: header first, no trailing newline."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([_format_value(cell_value(row, key)) for _, key in columns])
    return buffer.getvalue().rstrip("\n")


def write_csv(csv_text: str, output_path: str | Path) -> Path:
    """Write already-serialized CSV text to *output_path*, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as fh:
        fh.write(csv_text + "\n")
    return path
