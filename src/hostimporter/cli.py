"""Command-line interface for the Zabbix CSV Host Importer."""

import asyncio
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import ImporterConfig, load_config
from .constants import VERSION
from .core.upload import StagedUpload
from .execution.runner import ImportRunner
from .models.results import ImportSummary, ParseResult, TransformResult
from .observability import ReportGenerator, configure_logging
from .utils.exceptions import FileError, ImporterError, RowError
from .zabbix.client import ZabbixClient

app = typer.Typer(
    name="zbx-host-import",
    help="Zabbix CSV Host Importer - create Zabbix hosts from a CSV file",
    add_completion=False,
)

console = Console()


def _load(config_file: Path | None, log_level: str | None) -> ImporterConfig:
    try:
        config = load_config(config_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]ERROR: Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
    )
    return config


def _print_row_errors(errors: list[RowError]) -> None:
    if not errors:
        return
    console.print(f"\n[yellow]WARNING: {len(errors)} row(s) rejected:[/yellow]")
    for error in errors[:20]:
        console.print(f"  Line {error.line_number}: {error.message}")
    if len(errors) > 20:
        console.print(f"  ... and {len(errors) - 20} more")


def _print_preview(parsed: ParseResult, transformed: TransformResult) -> None:
    table = Table(title="Hosts to import")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Visible name")
    table.add_column("Groups")
    table.add_column("Templates")
    table.add_column("Proxy")
    table.add_column("Interfaces")

    for d in transformed.descriptors:
        interfaces = ", ".join(
            f"{i.type.name} {i.ip or i.dns}:{i.port}" for i in d.interfaces
        )
        table.add_row(
            str(d.line_number),
            d.host,
            d.visible_name or "",
            ", ".join(d.group_names),
            ", ".join(d.template_names),
            d.proxy_name or "",
            interfaces,
        )
    console.print(table)
    _print_row_errors(sorted(parsed.errors + transformed.errors, key=lambda e: e.line_number))


def _print_summary(summary: ImportSummary) -> None:
    if summary.file_error:
        console.print(f"\n[bold red]ERROR:[/bold red] {summary.file_error}")
        return

    table = Table(title="Import results")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Host", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for r in summary.results:
        if r.skipped:
            status = "[yellow]skipped[/yellow]"
        elif r.success:
            status = "[green]created[/green]"
        else:
            status = "[red]failed[/red]"
        details = [f"id {r.host_id}"] if r.host_id else []
        if r.error:
            details.append(r.error)
        details.extend(r.warnings)
        table.add_row(str(r.row_number), r.host, status, "\n".join(details))
    console.print(table)
    _print_row_errors(summary.row_errors)

    style = "green" if summary.is_complete_success else "yellow"
    console.print(f"\n[bold {style}]{summary.get_summary()}[/bold {style}]")


@app.command()
def validate(
    csv_file: Path = typer.Argument(..., help="CSV file to validate", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Parse and check a CSV file without contacting Zabbix.

    Exits with 1 if the file is rejected or any row has an error.

    Examples:
        zbx-host-import validate hosts.csv
        zbx-host-import validate hosts.csv --config prod.yaml
    """
    config = _load(config_file, None)
    console.print(f"\n[bold blue]Validating CSV:[/bold blue] {csv_file}\n")

    try:
        parsed, transformed = ImportRunner(config).preview(csv_file)
    except FileError as e:
        console.print(f"[red]ERROR:[/red] {e}")
        raise typer.Exit(code=1) from e

    _print_preview(parsed, transformed)

    if parsed.errors or transformed.errors:
        raise typer.Exit(code=1)
    console.print(f"\n[green]OK:[/green] {len(transformed.descriptors)} host(s) ready to import")


@app.command()
def apply(
    csv_file: Path = typer.Argument(..., help="CSV file to import", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Write a JSON report to this path ('-' for stdout)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview only, create nothing"),
    concurrency: int | None = typer.Option(
        None, "--concurrency", min=1, help="Rows submitted in parallel (default: 1)"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR"
    ),
) -> None:
    """
    Create Zabbix hosts from a CSV file.

    The file is copied to a private staging file first; the original is
    never modified. Exits with 1 if the file is rejected or any row fails.

    Examples:
        zbx-host-import apply hosts.csv --dry-run
        zbx-host-import apply hosts.csv --config prod.yaml --report report.json
        zbx-host-import apply hosts.csv --concurrency 4
    """
    config = _load(config_file, log_level)
    if concurrency is not None:
        config.policy.max_concurrent_rows = concurrency

    console.print(
        Panel.fit(
            f"[bold blue]Zabbix CSV Host Import[/bold blue]\n\n"
            f"CSV File: {csv_file}\n"
            f"Zabbix: {config.zabbix.url if config.zabbix else '-'}\n"
            f"Mode: [yellow]{'DRY RUN' if dry_run else 'EXECUTE'}[/yellow]",
            border_style="blue",
        )
    )

    runner = ImportRunner(config, console)

    if dry_run:
        try:
            parsed, transformed = runner.preview(csv_file)
        except FileError as e:
            console.print(f"[red]ERROR:[/red] {e}")
            raise typer.Exit(code=1) from e
        _print_preview(parsed, transformed)
        console.print("\n[yellow]DRY RUN: no hosts were created[/yellow]")
        return

    if config.zabbix is None:
        console.print(
            "[red]ERROR:[/red] No Zabbix connection configured. "
            "Use --config or set ZABBIX_URL and ZABBIX_API_TOKEN."
        )
        raise typer.Exit(code=1)

    async def run_apply() -> ImportSummary:
        with open(csv_file, "rb") as source:
            staged = StagedUpload.from_stream(source)
        with staged:
            async with ZabbixClient(config.zabbix) as client:
                return await runner.submit(staged.path, client)

    try:
        summary = asyncio.run(run_apply())
    except ImporterError as e:
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    _print_summary(summary)

    if report:
        generator = ReportGenerator()
        import_report = generator.generate_report(summary, csv_file=csv_file.name)
        if str(report) == "-":
            generator.write_json(import_report, sys.stdout)
        else:
            generator.write_json_report(import_report, report)
            console.print(f"Report written to {report}")

    if not summary.is_complete_success:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel.fit(
            "[bold]Zabbix CSV Host Importer[/bold]\n\n"
            f"Version: [cyan]{VERSION}[/cyan]\n"
            "Python: 3.11+\n\n"
            "[bold]Features:[/bold]\n"
            "- Semicolon separated host files with header validation\n"
            "- Agent, SNMP and JMX interfaces\n"
            "- Host group auto-creation, proxy and template linking\n"
            "- Zabbix JSON-RPC API with token or user.login auth\n"
            "- JSON import reports",
            title="About",
            border_style="blue",
        )
    )
