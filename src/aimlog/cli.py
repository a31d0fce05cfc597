"""
aimlog CLI - Command Line Interface

Provides commands for:
- Ingesting a stats folder (parse, upload, archive)
- Inspecting a single stats file
- Summarizing parsed sessions
- Watching the stats folder for new files
- Showing or generating configuration
"""

import json
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aimlog import __version__
from aimlog.core.config import (
    AimlogConfig,
    config_to_dict,
    configure_logging,
    generate_default_config,
    get_config,
    load_config,
    set_config,
)
from aimlog.core.errors import SessionParseError
from aimlog.core.parser import SessionParser
from aimlog.export import export_sessions_to_csv, session_to_dict, sessions_to_dataframe
from aimlog.ingest import find_session_files, ingest_file, parse_session_files, run_ingest
from aimlog.storage import FileUploader, GCSUploader, Uploader
from aimlog.watcher import StatsFileEvent, StatsWatcher

app = typer.Typer(
    name="aimlog",
    help="Parse aim trainer stats files and ship them to object storage",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]aimlog[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (YAML, TOML or JSON)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """aimlog - aim trainer stats ingestion"""
    try:
        config = load_config(config_file)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    set_config(config)
    configure_logging(config.logging, verbose=verbose)


def _build_uploader(config: AimlogConfig, output: Optional[Path], upload: bool) -> Optional[Uploader]:
    if output is not None:
        return FileUploader(output)
    if not upload:
        return None
    try:
        return GCSUploader(config.storage)
    except (ValueError, ImportError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def ingest(
    directory: Optional[Path] = typer.Argument(
        None,
        help="Folder holding stats files (defaults to ingest.source_dir)",
        file_okay=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the payload to this file instead of uploading it",
        dir_okay=False,
    ),
    upload: bool = typer.Option(
        True,
        "--upload/--no-upload",
        help="Upload the payload to the bucket; --no-upload only parses and leaves files in place",
    ),
    archive: bool = typer.Option(True, "--archive/--no-archive", help="Move parsed files into processed/"),
    strict: bool = typer.Option(False, "--strict", help="Fail on sections that cannot be decoded"),
) -> None:
    """
    Parse every stats file in a folder and ship the sessions.

    Any file that cannot be parsed aborts the whole run: nothing is
    uploaded and nothing is moved.
    """
    config = get_config()
    config.ingest.archive = archive and config.ingest.archive
    if strict:
        config.parser.strict_sections = True

    uploader = _build_uploader(config, output, upload)

    try:
        result = run_ingest(config, uploader, source_dir=directory)
    except (SessionParseError, OSError, ValueError) as e:
        logger.error(f"Ingest aborted: {e}")
        console.print(f"[red]Ingest aborted:[/red] {e}")
        raise typer.Exit(1)

    batch = result.batch
    if not len(batch):
        console.print("[yellow]No stats files found[/yellow]")
        return

    table = Table(title="Ingest", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Sessions", str(len(batch)))
    table.add_row("Payload", f"{len(batch.payload)} bytes")
    table.add_row("Dropped sections", str(batch.dropped_section_count))
    table.add_row("Object", result.object_name or "-")
    table.add_row("Archived", str(len(result.archived)))
    console.print(table)


@app.command()
def parse(
    stats_file: Path = typer.Argument(
        ...,
        help="Stats file to parse",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the session as JSON"),
) -> None:
    """Parse one stats file and display its contents."""
    parser = SessionParser.from_config(get_config().parser)

    try:
        report = parser.parse_file_report(stats_file)
    except SessionParseError as e:
        console.print(f"[red]Error parsing stats file:[/red] {e}")
        raise typer.Exit(1)

    session = report.session
    if as_json:
        typer.echo(json.dumps(session_to_dict(session), indent=2, ensure_ascii=False))
        return

    info_table = Table(title="Session", show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("Hash", session.session_hash)
    info_table.add_row("Time", session.time.isoformat())
    info_table.add_row("Scenario", session.scenario or "-")
    if session.statistics:
        info_table.add_row("Score", f"{session.statistics.score:.1f}")
        info_table.add_row("Kills", f"{session.statistics.kills:.0f}")
    if session.weapon_settings:
        info_table.add_row("Weapon", session.weapon_settings.weapon or "-")
        info_table.add_row("Accuracy", f"{session.weapon_settings.accuracy:.1%}")
    info_table.add_row("Kill log rows", str(session.kill_count))
    console.print(info_table)

    if not report.ok:
        lines = "\n".join(
            f"[yellow]{section.name.lower()}[/yellow]: {error}"
            for section, error in sorted(report.section_errors.items())
        )
        console.print(Panel(lines, title="[bold yellow]Dropped sections[/bold yellow]", expand=False))


@app.command()
def summary(
    directory: Optional[Path] = typer.Argument(
        None,
        help="Folder holding stats files (defaults to ingest.source_dir)",
        file_okay=False,
    ),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Also write the summary to a CSV file"),
) -> None:
    """Tabulate the sessions in a folder without uploading or moving anything."""
    config = get_config()
    directory = directory or Path(config.ingest.source_dir)
    parser = SessionParser.from_config(config.parser)

    try:
        paths = find_session_files(directory, config.ingest.file_suffix)
        sessions = [report.session for report in parse_session_files(paths, parser)]
    except (SessionParseError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not sessions:
        console.print("[yellow]No stats files found[/yellow]")
        return

    df = sessions_to_dataframe(sessions).sort_values("time")

    table = Table(title=f"Sessions ({len(df)})")
    table.add_column("Time", style="cyan")
    table.add_column("Scenario")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Kills", justify="right")
    for _, row in df.iterrows():
        score = row.get("statistics_score")
        scenario = row.get("statistics_scenario")
        table.add_row(
            row["time"].strftime("%Y-%m-%d %H:%M:%S"),
            scenario if isinstance(scenario, str) and scenario else "-",
            "-" if pd.isna(score) else f"{score:.1f}",
            str(row["kill_count"]),
        )
    console.print(table)

    if csv_path:
        export_sessions_to_csv(sessions, csv_path)
        console.print(f"[green]Summary written to[/green] {csv_path}")


@app.command()
def watch(
    folder: Optional[Path] = typer.Argument(
        None,
        help="Folder to watch (defaults to the game's stats folder)",
        file_okay=False,
    ),
    upload: bool = typer.Option(True, "--upload/--no-upload", help="Upload each new session"),
) -> None:
    """
    Watch for new stats files and ingest each one as it appears.

    Files that cannot be parsed are reported and left in place.
    """
    config = get_config()
    watcher = StatsWatcher.from_config(config, watch_folder=folder)
    uploader = _build_uploader(config, None, upload and config.watcher.upload)
    parser = SessionParser.from_config(config.parser)

    console.print("\n[bold blue]aimlog[/bold blue] - Watching for stats files\n")
    console.print(f"[cyan]Folder:[/cyan] {watcher.watch_folder}")
    console.print(f"[cyan]Upload:[/cyan] {'Yes' if uploader else 'No'}")
    console.print("\nPress [bold]Ctrl+C[/bold] to stop...\n")

    existing = watcher.scan_existing()
    if existing:
        console.print(f"[yellow]Found {len(existing)} existing stats file(s); run 'aimlog ingest' for those[/yellow]\n")

    @watcher.on_new_file
    def handle_new_file(event: StatsFileEvent) -> None:
        console.print(f"[green]New stats file:[/green] {event.filename}")
        try:
            result = ingest_file(event.file_path, config, uploader, parser)
        except SessionParseError as e:
            console.print(f"[red]Skipped:[/red] {e}")
            return
        session = result.batch.sessions[0]
        console.print(f"  {session.scenario or '-'}: {session.kill_count} kills, object {result.object_name or '-'}")

    try:
        watcher.start(blocking=True)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping watcher...[/yellow]")
        watcher.stop()


@app.command(name="config")
def show_config(
    init: Optional[Path] = typer.Option(
        None,
        "--init",
        help="Write a default configuration file to this path",
        dir_okay=False,
    ),
) -> None:
    """Show the effective configuration, or write a default one."""
    if init is not None:
        if init.exists():
            console.print(f"[red]Error:[/red] {init} already exists")
            raise typer.Exit(1)
        try:
            generate_default_config(init)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"[green]Wrote default configuration to[/green] {init}")
        return

    typer.echo(json.dumps(config_to_dict(get_config()), indent=2))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
