import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import yaml

from ._report_context import generate_timestamps, get_jinja_env, vm_kwargs
from .errors import InstallsReporterError
from .export import SortState, row_dicts, write_csv
from .messages import aggregate_install_messages, messages_for_item
from .models.filters import Dimension, FilterState
from .models.settings import ReporterSettings
from .report_mode import ReportModeResolver
from .settings import load_settings
from .sources import DeviceSource, SnapshotSource

logger = logging.getLogger("installs_reporter")

# CLI option name -> facet dimension
_FILTER_OPTIONS: tuple[tuple[str, Dimension, str], ...] = (
    ("usage", Dimension.USAGE, "Usage (substring, case-insensitive)."),
    ("catalog", Dimension.CATALOG, "Catalog (substring, case-insensitive)."),
    ("fleet", Dimension.FLEET, "Fleet (exact)."),
    ("platform", Dimension.PLATFORM, "Platform (exact)."),
    ("room", Dimension.ROOM, "Room/location (exact)."),
    ("manifest", Dimension.MANIFEST, "Manifest / client identifier (substring)."),
    ("repo", Dimension.SOFTWARE_REPO, "Software repository URL (exact)."),
    ("agent_version", Dimension.AGENT_VERSION, "Agent version (exact)."),
    ("device_status", Dimension.DEVICE_STATUS, "Device health: active, stale, missing."),
    ("install_status", Dimension.INSTALL_STATUS, "Install status: installed, pending, warning, error, removed."),
)

_SUMMARY_DIMENSIONS = [d.value for d in Dimension]


def filter_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach one repeatable option per facet dimension plus --search and --item."""
    for name, _dimension, help_text in reversed(_FILTER_OPTIONS):
        flag = "--" + name.replace("_", "-")
        func = click.option(flag, name, multiple=True, help=help_text)(func)
    func = click.option("--search", "-s", default="", help="Free-text search.")(func)
    func = click.option(
        "--item",
        "items",
        multiple=True,
        help="Managed item to include; any --item switches to the generated (flat) report.",
    )(func)
    func = click.option("--sort", "sort_column", help="Column header or key to sort by.")(func)
    func = click.option("--desc", is_flag=True, default=False, help="Sort descending.")(func)
    return func


def _build_filter_state(options: dict[str, Any]) -> FilterState:
    state = FilterState().with_search(options.get("search") or "")
    for name, dimension, _help in _FILTER_OPTIONS:
        values = options.get(name) or ()
        if values:
            try:
                state = state.with_selection(dimension, values)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="--" + name.replace("_", "-")) from exc
    return state


def _resolve_view(input_file: str, settings: ReporterSettings, options: dict[str, Any]) -> dict[str, Any]:
    """Load the snapshot, drive the report mode state machine and compute the view."""
    source: DeviceSource = SnapshotSource(input_file, settings)
    resolver = ReportModeResolver(settings)
    resolver.load(source.fetch_device_list())
    items = tuple(options.get("items") or ())
    if items:
        resolver.select_items_for_report()
        resolver.generate(items)
    resolver.update_filters(_build_filter_state(options))
    sort = SortState(column=options["sort_column"], descending=options["desc"]) if options.get("sort_column") else None
    view = resolver.view(sort=sort)
    view["meta"].update(vm_kwargs(generate_timestamps(options.get("report_stamp"))))
    return view


def _settings(ctx: click.Context) -> ReporterSettings:
    return ctx.obj["settings"]


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug-level logging.")
@click.option("--config", "config_path", type=click.Path(), help="Settings YAML (thresholds, internal items).")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """Installs Reporter: faceted install-status reports for Cimian/Munki fleets."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    try:
        settings = load_settings(config_path)
    except InstallsReporterError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Device snapshot (YAML or JSON).")
@click.pass_context
def options(ctx: click.Context, input_file: str) -> None:
    """Print the selectable facet values of a snapshot as YAML."""
    try:
        payload = SnapshotSource(input_file, _settings(ctx)).fetch_filter_options()
    except InstallsReporterError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(yaml.dump(payload, default_flow_style=False, sort_keys=False), nl=False)


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Device snapshot (YAML or JSON).")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["summary", "yaml"]),
    default="summary",
    show_default=True,
    help="Text summary or full YAML view.",
)
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@filter_options
@click.pass_context
def view(ctx: click.Context, input_file: str, output_format: str, **opts: Any) -> None:
    """Print the filtered report: facet counts, totals and rows."""
    try:
        report = _resolve_view(input_file, _settings(ctx), opts)
    except InstallsReporterError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format == "yaml":
        payload = {
            "meta": report["meta"],
            "mode": report["mode"],
            "status_totals": report["status_totals"],
            "device_health": report["device_health"],
            "facet_counts": report["facet_counts"],
            "rows": row_dicts(report["sorted_rows"]),
        }
        click.echo(yaml.dump(payload, default_flow_style=False, sort_keys=False), nl=False)
        return

    tpl = get_jinja_env().get_template("summary.txt.j2")
    click.echo(tpl.render(view=report, facet_dimensions=_SUMMARY_DIMENSIONS), nl=False)


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Device snapshot (YAML or JSON).")
@click.option("--output", "-o", "output_file", required=True, type=click.Path(), help="CSV file to write.")
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@filter_options
@click.pass_context
def export(ctx: click.Context, input_file: str, output_file: str, **opts: Any) -> None:
    """Write the filtered, sorted report as CSV."""
    try:
        report = _resolve_view(input_file, _settings(ctx), opts)
    except InstallsReporterError as exc:
        raise click.ClickException(str(exc)) from exc
    path = write_csv(report["csv_text"], output_file)
    click.echo(f"Wrote {len(report['rows'])} {report['mode']} rows to {Path(path)}")


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Device snapshot (YAML or JSON).")
@click.option("--kind", type=click.Choice(["error", "warning"]), default="error", show_default=True)
@click.option("--item", "item_name", help="Only messages for this managed item.")
@click.option("--limit", type=int, default=0, help="Show at most N messages (0 = all).")
@click.pass_context
def messages(ctx: click.Context, input_file: str, kind: str, item_name: str | None, limit: int) -> None:
    """List install error/warning messages grouped across the fleet."""
    settings = _settings(ctx)
    try:
        devices = SnapshotSource(input_file, settings).fetch_device_list()
    except InstallsReporterError as exc:
        raise click.ClickException(str(exc)) from exc

    if item_name:
        results = messages_for_item(devices, item_name, kind, settings)
    else:
        results = aggregate_install_messages(devices, kind, settings)
    if limit > 0:
        results = results[:limit]

    if not results:
        click.echo(f"No {kind} messages.")
        return
    for entry in results:
        serials = ", ".join(sorted({d["serial_number"] for d in entry["devices"]}))
        click.echo(f"{entry['count']:5d}  [{entry['source']}] {entry['message']}  ({serials})")


if __name__ == "__main__":
    main()
