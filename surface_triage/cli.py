"""Command-line interface for Surface Triage."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from surface_triage import __version__
from surface_triage.config import FieldPolicy, TriageSettings
from surface_triage.core.intake import load_dataset, load_rule_set, sample_dataset
from surface_triage.core.session import TriageSession
from surface_triage.filtering.operators import OPERATOR_LABELS, operators_for
from surface_triage.models import Category, Record, RuleLogic
from surface_triage.output.json_export import JSONExporter
from surface_triage.output.summary import search_records, summarize
from surface_triage.utils.exceptions import SurfaceTriageError

console = Console()

CATEGORY_CHOICES = [c.value for c in Category]

SEVERITY_COLORS = {
    "critical": "red bold",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}


def print_status(status: str, message: str) -> None:
    """Print a status message with consistent formatting.

    Args:
        status: Status indicator ([OK], [FAIL], [WARN], [INFO], [ERROR])
        message: Message to display
    """
    color_map = {
        "[OK]": "green",
        "[FAIL]": "red",
        "[WARN]": "yellow",
        "[INFO]": "blue",
        "[ERROR]": "red bold",
    }
    color = color_map.get(status, "white")
    console.print(f"[{color}]{status}[/{color}] {message}")


def _severity_cell(severity: Optional[str]) -> str:
    value = severity or "low"
    color = SEVERITY_COLORS.get(value, "white")
    return f"[{color}]{value.upper()}[/{color}]"


@click.group()
@click.version_option(version=__version__, prog_name="surface-triage")
@click.option(
    "--field-policy",
    type=click.Choice([p.value for p in FieldPolicy], case_sensitive=False),
    default=None,
    help="Unknown field/operator handling: permissive (fall back) or strict (error)",
)
@click.option(
    "--audit-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for the session audit trail",
)
@click.option("-v", "--verbose", count=True, help="Verbosity level")
@click.pass_context
def main(ctx: click.Context, field_policy: Optional[str], audit_dir: Optional[str], verbose: int):
    """Surface Triage - Review Windows execution-surface inventories.

    Classifies scanner entries by severity, routes them into category
    views and filters each view with a rule-set.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    settings = TriageSettings.from_env()
    if field_policy:
        settings.field_policy = FieldPolicy.from_string(field_policy)
    if audit_dir:
        settings.audit_dir = Path(audit_dir)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _settings(ctx: click.Context) -> TriageSettings:
    return (ctx.obj or {}).get("settings") or TriageSettings.from_env()


def _open_session(ctx: click.Context, dataset: Optional[str]) -> TriageSession:
    """Create a session and load the dataset file, or the demo data."""
    session = TriageSession(settings=_settings(ctx))
    if dataset:
        try:
            data = load_dataset(dataset)
        except SurfaceTriageError as e:
            if session.audit:
                session.audit.log_error("DATASET_LOAD", e)
            raise
        session.load(data, source=dataset)
    else:
        session.load(sample_dataset(), source="<demo>")
    return session


def _parse_rule_spec(spec: str) -> Tuple[str, str, str]:
    """Split FIELD:OPERATOR[:VALUE]; the value may itself contain colons."""
    parts = spec.split(":", 2)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise click.BadParameter(
            f"'{spec}' is not FIELD:OPERATOR[:VALUE]", param_hint="'-r' / '--rule'"
        )
    value = parts[2] if len(parts) == 3 else ""
    return parts[0], parts[1], value


def _print_records(records: List[Record], title: str, show_reasons: bool = False) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Source")
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Reasons" if show_reasons else "Primary Reason")

    for record in records:
        reasons = "\n".join(record.reasons) if show_reasons else record.primary_reason
        table.add_row(
            escape(record.name),
            escape(record.source),
            escape(record.kind),
            _severity_cell(record.severity),
            escape(reasons),
        )
    console.print(table)


@main.command()
def info():
    """Display tool information and supported categories."""
    console.print(Panel(
        f"[bold]Surface Triage v{__version__}[/bold]\n\n"
        "Triage of Windows execution-surface scanner output\n\n"
        "[bold]Categories:[/bold]\n"
        "  [->] inventory: every entry\n"
        "  [->] registry: installed programs (registry, MSI, AppX)\n"
        "  [->] autoruns: persistence mechanisms\n"
        "  [->] services: services and drivers\n"
        "  [->] filesystem: portable executables\n\n"
        "[bold]Severity:[/bold]\n"
        "  [*] Baseline per entry kind, escalated by risk indicators\n"
        "  [*] Every level carries human-readable reasons\n\n"
        "[bold]Filtering:[/bold]\n"
        "  [*] Per-category rule-sets combined with AND or OR\n"
        "  [*] Text and enumerated fields with typed operators\n"
        "  [*] Rule files via YAML/JSON\n"
        "  [*] JSON export of filtered views",
        title="About",
        style="blue",
    ))


@main.command()
@click.argument("category", type=click.Choice(CATEGORY_CHOICES, case_sensitive=False))
@click.pass_context
def fields(ctx: click.Context, category: str):
    """List the filterable fields of a category.

    CATEGORY is one of inventory, registry, autoruns, services, filesystem.
    """
    session = TriageSession(settings=_settings(ctx))

    table = Table(title=f"Fields: {category}", show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Label")
    table.add_column("Kind")
    table.add_column("Operators")

    for definition in session.fields(category):
        labels = ", ".join(OPERATOR_LABELS[op] for op in operators_for(definition.kind))
        table.add_row(definition.key, definition.label, definition.kind.value, labels)
    console.print(table)


@main.command()
@click.argument("category", type=click.Choice(CATEGORY_CHOICES, case_sensitive=False))
@click.argument("field")
@click.argument("dataset", type=click.Path(exists=True), required=False)
@click.pass_context
def options(ctx: click.Context, category: str, field: str, dataset: Optional[str]):
    """Show the value choices of a field for the loaded records.

    DATASET is a scanner JSON export (default: built-in demo data).
    """
    try:
        session = _open_session(ctx, dataset)
        values = session.enum_options(category, field)
    except SurfaceTriageError as e:
        print_status("[ERROR]", str(e))
        sys.exit(1)

    if not values:
        print_status("[INFO]", f"No values for '{field}' in {category}")
        return
    for value in values:
        console.print(f"  [->] {value}", markup=False, highlight=False)


@main.command()
@click.argument("dataset", type=click.Path(exists=True), required=False)
@click.option("--reasons", is_flag=True, help="Show every severity reason")
@click.pass_context
def classify(ctx: click.Context, dataset: Optional[str], reasons: bool):
    """Classify every entry of a dataset by severity.

    DATASET is a scanner JSON export (default: built-in demo data).
    """
    try:
        session = _open_session(ctx, dataset)
    except SurfaceTriageError as e:
        print_status("[ERROR]", str(e))
        sys.exit(1)

    records = session.records
    _print_records(records, f"Severity ({len(records)} entries)", show_reasons=reasons)


@main.command(name="filter")
@click.argument("dataset", type=click.Path(exists=True), required=False)
@click.option(
    "-c", "--category",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=Category.INVENTORY.value,
    help="Category view to filter",
)
@click.option("-r", "--rule", "rule_specs", multiple=True, help="Rule as FIELD:OPERATOR[:VALUE]")
@click.option(
    "--logic",
    type=click.Choice([logic.value for logic in RuleLogic], case_sensitive=False),
    default=None,
    help="Combine rules with AND or OR",
)
@click.option("--rules", "rules_file", type=click.Path(exists=True), help="YAML/JSON rule file")
@click.option("-o", "--output", help="Output file path for JSON export")
@click.option("-f", "--format", "output_format", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def filter_command(
    ctx: click.Context,
    dataset: Optional[str],
    category: str,
    rule_specs: Tuple[str, ...],
    logic: Optional[str],
    rules_file: Optional[str],
    output: Optional[str],
    output_format: str,
):
    """Filter a category view with a rule-set.

    DATASET is a scanner JSON export (default: built-in demo data).
    """
    parsed = [_parse_rule_spec(spec) for spec in rule_specs]
    category = Category.from_string(category)

    try:
        session = _open_session(ctx, dataset)
        if rules_file:
            session.apply_rule_set(load_rule_set(rules_file, category=category))
        for field_key, operator, value in parsed:
            session.add_rule(category, field_key, operator, value)
        if logic:
            session.set_logic(category, logic.lower())

        rule_set = session.current_rule_set(category)
        records = session.filtered_records(category)
        total = len(session.category_records(category))

        if output_format == "json" or output:
            exporter = JSONExporter(indent=2)
            if output:
                exporter.to_file(records, output, rule_set=rule_set)
                if session.audit:
                    session.audit.log_export(category.value, output, len(records))
                print_status("[OK]", f"Exported {len(records)} entries to: {output}")
            else:
                click.echo(exporter.to_json(records, rule_set=rule_set))
            return

    except SurfaceTriageError as e:
        print_status("[ERROR]", str(e))
        sys.exit(1)

    _print_records(records, f"{category.value} ({rule_set.logic.value.upper()})")
    print_status("[INFO]", f"{len(records)} of {total} entries match")


@main.command()
@click.argument("dataset", type=click.Path(exists=True), required=False)
@click.option(
    "-c", "--category",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=Category.INVENTORY.value,
    help="Category view to summarize",
)
@click.option("-q", "--query", default="", help="Free-text search across every attribute")
@click.pass_context
def summary(ctx: click.Context, dataset: Optional[str], category: str, query: str):
    """Show severity counts, top sources and top publishers.

    DATASET is a scanner JSON export (default: built-in demo data).
    """
    try:
        session = _open_session(ctx, dataset)
    except SurfaceTriageError as e:
        print_status("[ERROR]", str(e))
        sys.exit(1)

    records = search_records(session.filtered_records(category), query)
    result = summarize(records, total_loaded=len(session.records))

    table = Table(title="Severity", show_header=True, header_style="bold")
    table.add_column("Level", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right")
    for bucket in result.severities:
        table.add_row(_severity_cell(bucket.severity), str(bucket.count), f"{bucket.percent}%")
    console.print(table)

    for title, items in (("Top Sources", result.top_sources), ("Top Publishers", result.top_publishers)):
        if not items:
            continue
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Name", style="cyan")
        table.add_column("Count", justify="right")
        for item in items:
            table.add_row(escape(item.label), str(item.count))
        console.print(table)

    print_status("[INFO]", f"Showing {result.shown} of {result.total_loaded} entries")


if __name__ == "__main__":
    main()
