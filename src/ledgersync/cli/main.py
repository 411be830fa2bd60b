"""
LedgerSync CLI Main Entry Point.

Provides command-line access to fingerprints, validation, offline
three-way merges and the sync session.
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click
import humanize
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ledgersync import __version__
from ledgersync.core.config import LedgerSyncConfig, load_config
from ledgersync.core.exceptions import LedgerSyncError
from ledgersync.core.logging import setup_logging
from ledgersync.core.models import PARTITION_COLLECTIONS, SHARED_COLLECTIONS, DataFile
from ledgersync.core.session import Session, load_status
from ledgersync.storage import JsonFileBackend
from ledgersync.sync.conflict import Conflict, MergeOutcome, Resolution, Side, apply_resolutions
from ledgersync.sync.fingerprint import fingerprint
from ledgersync.sync.orchestrator import orchestrate

console = Console()


def get_config(ctx: click.Context) -> LedgerSyncConfig:
    """Get or load configuration from context."""
    if "config" not in ctx.obj:
        config_path = ctx.obj.get("config_path")
        ctx.obj["config"] = (
            LedgerSyncConfig.load(config_path) if config_path else load_config()
        )
    return ctx.obj["config"]


def init_logging(ctx: click.Context) -> None:
    """Configure logging; console logs are off for --json and --quiet."""
    config = get_config(ctx)
    if ctx.obj.get("json_output") or ctx.obj.get("quiet"):
        config.logging.console_enabled = False
    setup_logging(config.logging)


def read_data_file(path: Path) -> DataFile:
    """Read and validate a data file, exiting on failure."""
    try:
        return DataFile.from_json(path.read_text(encoding="utf-8"))
    except LedgerSyncError as e:
        console.print(f"[red]{path}: {e}[/red]")
        for error in getattr(e, "errors", []):
            console.print(f"  [red]- {error}[/red]")
        sys.exit(1)


def describe_record(record: Any) -> str:
    if record is None:
        return "[dim](deleted)[/dim]"
    return json.dumps(record.to_wire(), indent=1, sort_keys=True)


def conflict_table(conflicts: list[Conflict]) -> Table:
    table = Table(title=f"Conflicts ({len(conflicts)})")
    table.add_column("#", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Year", style="magenta")
    table.add_column("Record", style="white")
    table.add_column("Reason", style="yellow")
    for index, conflict in enumerate(conflicts):
        table.add_row(
            str(index),
            conflict.kind.value,
            conflict.partition or "",
            conflict.label,
            conflict.reason.value,
        )
    return table


def prompt_resolver(outcome: MergeOutcome) -> Resolution:
    """Ask on the terminal which side of each conflict to keep."""
    console.print(conflict_table(outcome.conflicts))
    choices: dict[int, Side] = {}
    for index, conflict in enumerate(outcome.conflicts):
        console.print(
            Panel(
                f"[cyan]External:[/cyan]\n{describe_record(conflict.external)}\n\n"
                f"[cyan]Local:[/cyan]\n{describe_record(conflict.local)}",
                title=f"#{index} {conflict.kind.value}: {conflict.label}",
            )
        )
        answer = click.prompt(
            "Keep [e]xternal, [l]ocal, or [c]ancel the save",
            type=click.Choice(["e", "l", "c"]),
        )
        if answer == "c":
            return Resolution.cancel()
        choices[index] = Side.EXTERNAL if answer == "e" else Side.LOCAL
    return Resolution(choices=choices)


@click.group()
@click.version_option(version=__version__, prog_name="LedgerSync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("--quiet", "-q", is_flag=True, help="Suppress log output on the console")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, json_output: bool, quiet: bool) -> None:
    """
    LedgerSync - keep a ledger data file in sync with its store.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet"] = quiet


@cli.command("fingerprint")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def fingerprint_cmd(path: Path) -> None:
    """Print the content fingerprint of a data file."""
    click.echo(fingerprint(read_data_file(path)))


@cli.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, path: Path) -> None:
    """Validate a data file and summarize its contents."""
    data = read_data_file(path)
    counts: dict[str, Any] = {name: len(getattr(data, name)) for name in SHARED_COLLECTIONS}
    counts["years"] = {
        year: {name: len(getattr(data.years[year], name)) for name in PARTITION_COLLECTIONS}
        for year in sorted(data.years)
    }

    if ctx.obj.get("json_output", False):
        click.echo(json.dumps({"valid": True, "version": data.version, "counts": counts}, indent=2))
        return

    table = Table(title=f"{path.name} (schema {data.version})")
    table.add_column("Collection", style="cyan")
    table.add_column("Year", style="magenta")
    table.add_column("Records", style="green", justify="right")
    for name in SHARED_COLLECTIONS:
        table.add_row(name, "", str(counts[name]))
    for year, year_counts in counts["years"].items():
        for name, count in year_counts.items():
            table.add_row(name, year, str(count))
    console.print(table)
    console.print("[green]Valid[/green]")


@cli.command("merge")
@click.argument("base", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("external", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("local", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write result here")
@click.option(
    "--prefer",
    type=click.Choice(["external", "local", "ask"]),
    default="ask",
    show_default=True,
    help="How to resolve conflicts",
)
@click.pass_context
def merge(
    ctx: click.Context,
    base: Path,
    external: Path,
    local: Path,
    output: Path | None,
    prefer: str,
) -> None:
    """Three-way merge EXTERNAL and LOCAL against their common BASE."""
    init_logging(ctx)
    outcome = orchestrate(read_data_file(base), read_data_file(external), read_data_file(local))
    json_output = ctx.obj.get("json_output", False)

    if not json_output:
        console.print(
            f"Auto-merged [green]{outcome.auto_merged}[/green] records, "
            f"[yellow]{len(outcome.conflicts)}[/yellow] conflicts"
        )

    result = outcome.merged
    if outcome.has_conflicts:
        if prefer == "ask":
            resolution = prompt_resolver(outcome)
        else:
            resolution = Resolution.all(prefer, outcome)
        if resolution.cancelled:
            console.print("[yellow]Merge cancelled, nothing written[/yellow]")
            sys.exit(1)
        result = apply_resolutions(outcome.merged, outcome.conflicts, resolution)

    if output is None:
        click.echo(result.to_json())
        return

    asyncio.run(JsonFileBackend(output).save(result))
    if json_output:
        click.echo(json.dumps({**outcome.to_dict(), "output": str(output)}, indent=2))
    else:
        console.print(f"[green]Merged data written to {output}[/green]")


@cli.command("status")
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the last recorded sync status."""
    config = get_config(ctx)
    report = load_status(config.sync.status_file)
    if report is None:
        console.print("[yellow]No sync status recorded yet[/yellow]")
        return

    if ctx.obj.get("json_output", False):
        click.echo(json.dumps(report, indent=2))
        return

    saves = [op for op in report.get("operations", []) if op.get("operation") == "save"]
    last_save = next((op for op in reversed(saves) if op.get("written")), None)
    last_saved = (
        humanize.naturaltime(datetime.now() - datetime.fromisoformat(last_save["timestamp"]))
        if last_save
        else "never"
    )
    summary = report.get("summary", {})
    console.print(
        Panel(
            f"[cyan]Backend:[/cyan] {report.get('backend')}\n"
            f"[cyan]Session:[/cyan] {report.get('session_id')}\n"
            f"[cyan]Last saved:[/cyan] {last_saved}\n"
            f"[cyan]Fingerprint:[/cyan] {last_save.get('fingerprint') if last_save else '-'}\n"
            f"[cyan]Saves written:[/cyan] {summary.get('saves_written', 0)}\n"
            f"[cyan]Conflicts seen:[/cyan] {summary.get('conflicts', 0)}\n"
            f"[cyan]Errors:[/cyan] {summary.get('total_errors', 0)}",
            title="Sync Status",
        )
    )


@cli.command("save")
@click.option("--year", "-y", type=int, default=lambda: datetime.now().year, help="Active year")
@click.pass_context
def save(ctx: click.Context, year: int) -> None:
    """Load the configured data file and save it back through the sync path."""
    config = get_config(ctx)
    init_logging(ctx)

    async def run() -> dict[str, Any]:
        session = Session(config=config, resolver=prompt_resolver)
        try:
            if await session.load(year) is None:
                session.workspace.adopt(DataFile.empty(year), year)
            session.mark_changed()
            result = await session.save()
        finally:
            await session.close()
        return result.to_dict()

    # No spinner here: the resolver may prompt.
    result = asyncio.run(run())

    if ctx.obj.get("json_output", False):
        click.echo(json.dumps(result, indent=2))
    else:
        console.print(f"[green]{result['status']}[/green] {result['fingerprint'] or ''}")


def main() -> None:
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
