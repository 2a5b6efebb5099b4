"""Per-dimension row predicates.

Within a dimension a row matches when *any* selected value matches; across
dimensions predicates are AND-ed. Usage, catalog and manifest selections
match as case-insensitive substrings; every other string dimension is an
exact, case-sensitive membership test.
"""

from collections.abc import Callable, Iterable
from datetime import datetime

from .classification import bucket_device_status
from .date_utils import utc_now
from .models.filters import Dimension, FilterState
from .models.records import DeviceConfigSummary, InstallRecord, StatusCategory
from .models.settings import ReporterSettings

Row = InstallRecord | DeviceConfigSummary
Predicate = Callable[[Row], bool]

SUBSTRING_DIMENSIONS = frozenset({Dimension.USAGE, Dimension.CATALOG, Dimension.MANIFEST})

# Attribute per dimension: (InstallRecord field, DeviceConfigSummary field)
_ATTRIBUTES: dict[Dimension, tuple[str, str]] = {
    Dimension.USAGE: ("usage", "usage"),
    Dimension.CATALOG: ("catalog", "catalog"),
    Dimension.FLEET: ("fleet", "fleet"),
    Dimension.PLATFORM: ("platform", "platform"),
    Dimension.ROOM: ("room", "room"),
    Dimension.MANIFEST: ("manifest", "client_identifier"),
    Dimension.SOFTWARE_REPO: ("software_repo", "software_repo_url"),
    Dimension.AGENT_VERSION: ("agent_version", "version"),
}


def row_values(
    row: Row,
    dimension: Dimension,
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
) -> tuple[str, ...]:
    """The value(s) *row* carries for *dimension*; summaries may carry several install statuses."""
    if dimension is Dimension.DEVICE_STATUS:
        settings = settings or ReporterSettings()
        bucket = bucket_device_status(row.last_seen, now, settings.active_hours, settings.stale_hours)
        return (bucket.value,)
    if dimension is Dimension.INSTALL_STATUS:
        if isinstance(row, InstallRecord):
            return (row.status.value,)
        return tuple(c.value for c in StatusCategory if row.count_for(c) > 0)
    record_attr, summary_attr = _ATTRIBUTES[dimension]
    value = getattr(row, record_attr if isinstance(row, InstallRecord) else summary_attr)
    return (value,) if value else ()


def value_matches(dimension: Dimension, values: Iterable[str], selected: Iterable[str]) -> bool:
    values = tuple(values)
    if dimension in SUBSTRING_DIMENSIONS:
        folded = [v.casefold() for v in values]
        return any(s.casefold() in v for s in selected for v in folded)
    return any(v in values for v in selected)


def matches_dimension(
    row: Row,
    dimension: Dimension,
    selected: tuple[str, ...],
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
) -> bool:
    if not selected:
        return True
    return value_matches(dimension, row_values(row, dimension, now=now, settings=settings), selected)


def search_fields(row: Row) -> tuple[str, ...]:
    if isinstance(row, InstallRecord):
        fields = [row.device_name, row.serial_number, row.asset_tag, row.name, row.version]
        fields.append(f"{row.name} - {row.version}" if row.version else row.name)
    else:
        fields = [
            row.device_name,
            row.serial_number,
            row.asset_tag,
            row.client_identifier,
            row.software_repo_url,
            row.version,
        ]
    return tuple(f for f in fields if f)


def matches_search(row: Row, query: str) -> bool:
    """Case-insensitive containment across the row's searchable text."""
    needle = (query or "").strip().casefold()
    if not needle:
        return True
    return any(needle in field.casefold() for field in search_fields(row))


def build_predicate(
    state: FilterState,
    *,
    now: datetime | None = None,
    settings: ReporterSettings | None = None,
    exclude: Dimension | None = None,
) -> Predicate:
    """AND of every active dimension (except *exclude*) and the search query."""
    now = now or utc_now()
    settings = settings or ReporterSettings()
    active = [(d, state.selection(d)) for d in state.active_dimensions if d is not exclude]

    def predicate(row: Row) -> bool:
        if not matches_search(row, state.search):
            return False
        return all(matches_dimension(row, d, sel, now=now, settings=settings) for d, sel in active)

    return predicate
