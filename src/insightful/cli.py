"""CLI interface for insightful."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from insightful.config import load_config, merge_cli_overrides
from insightful.core import InsightsReport, run_collection
from insightful.errors import InsightfulError, PipelineReport

app = typer.Typer(
    name="insightful",
    help="Reconcile local coding-assistant session data into usage rollups.",
)

console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from insightful import __version__

        typer.echo(f"insightful {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Insightful - reconcile coding-assistant sessions."""
    pass


def _summary_table(insights: InsightsReport, limit: int = 10) -> Table:
    table = Table(title="Projects by session count")
    table.add_column("Project")
    table.add_column("Sessions", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Hours", justify="right")
    for name, project in list(insights.projects.items())[:limit]:
        table.add_row(
            name,
            str(project.session_count),
            str(project.total_messages),
            str(project.total_git_commits),
            f"{project.total_hours:.1f}",
        )
    return table


@app.command()
def collect(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to an .insightful.toml config file.",
        ),
    ] = None,
    claude_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--claude-dir",
            help="Root of the assistant data directory. Defaults to ~/.claude.",
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Report file. Defaults to <claude-dir>/usage-data/insightful-data.json.",
        ),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option(
            "--workers",
            "-w",
            min=1,
            help="Maximum concurrent transcript scans.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log every skipped line and source count."),
    ] = False,
    print_path: Annotated[
        bool,
        typer.Option(
            "--print-path/--no-print-path",
            help="Print the written report path on stdout.",
        ),
    ] = True,
) -> None:
    """Collect every source and write the reconciled JSON report.

    Reads history.jsonl, per-project session indexes and transcripts, facet
    annotations and the stats cache.  Missing sources are skipped; only
    invalid configuration or a failure to write the report is an error.
    """
    _setup_logging(verbose)

    report = PipelineReport()
    try:
        config = merge_cli_overrides(
            load_config(config_path),
            claude_dir=claude_dir,
            output_file=output,
            max_workers=workers,
        )
        with console.status("Collecting session data..."):
            insights, written = run_collection(config, report)
    except InsightfulError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    console.print(
        f"[green]Done![/green] {insights.total_sessions_found} sessions across "
        f"{insights.total_projects} projects"
    )
    if insights.projects:
        console.print(_summary_table(insights))
    if report.issues:
        console.print(f"[yellow]Skipped input:[/yellow] {report.summary()}")
    console.print(f"Output: {written}")

    if print_path:
        typer.echo(str(written))


if __name__ == "__main__":
    app()
