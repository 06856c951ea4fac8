"""
Pitchside Worker CLI
====================

Command-line interface for running worker jobs.

Usage:
    python -m worker <command> [options]

Commands:
    ingest:demo                    Load demo seed data
    standings:rebuild              Recompute league tables from finished matches
    stats:rebuild                  Recompute player season stats
    matches:finalize               Record a final score and run the post-match pipeline
    sessions:purge                 Delete expired login sessions
    seasons:list                   Show the season catalogue

Examples:
    python -m worker ingest:demo --force
    python -m worker standings:rebuild --competition premier-league --season 2023/24
    python -m worker stats:rebuild
    python -m worker matches:finalize 5f0c... 2 1
    python -m worker sessions:purge
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

import click
from rich.console import Console
from rich.table import Table

from app.errors import PitchsideError
from worker import __version__
from worker.config import settings
from worker.database import run_job

console = Console()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def run(job):
    """Run an async job, turning domain errors into a clean CLI failure."""
    try:
        return asyncio.run(run_job(job))
    except PitchsideError as exc:
        raise click.ClickException(exc.message) from exc


def parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise click.BadParameter(f"Invalid id: {value}")


@click.group()
@click.version_option(version=__version__)
def cli():
    """Pitchside Worker - Background jobs for football data."""
    configure_logging()


# =============================================================================
# INGEST COMMANDS
# =============================================================================

@cli.command("ingest:demo")
@click.option("--force", is_flag=True, help="Clear existing reference data and reload")
def cmd_ingest_demo(force: bool):
    """Load demo seed data (idempotent)."""
    from worker.jobs.ingest import run_demo_ingest

    console.print("\n[bold]Pitchside Worker - Demo Ingestion[/bold]\n")
    run_demo_ingest(force=force)


# =============================================================================
# AGGREGATE COMMANDS
# =============================================================================

def print_rebuild(summaries, title: str) -> None:
    if not summaries:
        console.print("[yellow]No competition seasons found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Competition", style="cyan")
    table.add_column("Season", style="green")
    table.add_column("Table rows", justify="right")
    table.add_column("Stat lines", justify="right")
    for s in summaries:
        table.add_row(
            s.competition,
            s.season,
            "-" if s.standings_rows is None else str(s.standings_rows),
            "-" if s.stat_lines is None else str(s.stat_lines),
        )
    console.print(table)


@cli.command("standings:rebuild")
@click.option("--competition", type=str, default=None, help="Competition id or slug (default: all)")
@click.option("--season", type=str, default=None, help="Season label, e.g. 2023/24")
def cmd_standings_rebuild(competition: Optional[str], season: Optional[str]):
    """Recompute standings from finished matches."""
    from worker.jobs.aggregates import rebuild_aggregates

    console.print("\n[bold]Pitchside Worker - Standings Rebuild[/bold]\n")
    summaries = run(lambda db: rebuild_aggregates(db, competition, season, standings=True, stats=False))
    print_rebuild(summaries, "Standings")


@cli.command("stats:rebuild")
@click.option("--competition", type=str, default=None, help="Competition id or slug (default: all)")
@click.option("--season", type=str, default=None, help="Season label, e.g. 2023/24")
def cmd_stats_rebuild(competition: Optional[str], season: Optional[str]):
    """Recompute player season stats from lineups and events."""
    from worker.jobs.aggregates import rebuild_aggregates

    console.print("\n[bold]Pitchside Worker - Player Stats Rebuild[/bold]\n")
    summaries = run(lambda db: rebuild_aggregates(db, competition, season, standings=False, stats=True))
    print_rebuild(summaries, "Player stats")


# =============================================================================
# MATCH COMMANDS
# =============================================================================

@cli.command("matches:finalize")
@click.argument("match_id")
@click.argument("home_score", type=click.IntRange(min=0))
@click.argument("away_score", type=click.IntRange(min=0))
def cmd_matches_finalize(match_id: str, home_score: int, away_score: int):
    """Record a final score, score predictions, rebuild aggregates and notify followers."""
    from app.services.matches import finalize_match

    match_uuid = parse_uuid(match_id)
    result = run(lambda db: finalize_match(db, match_uuid, home_score, away_score))

    match = result.match
    console.print(
        f"[green]{match.home_team.name} {home_score}-{away_score} {match.away_team.name}[/green]"
    )
    console.print(f"  • predictions scored: {result.predictions_scored}")
    console.print(f"  • standings rows: {result.standings_rows}")
    console.print(f"  • stat lines: {result.stat_lines}")
    console.print(f"  • notifications sent: {result.notifications_sent}")


# =============================================================================
# ACCOUNT COMMANDS
# =============================================================================

@cli.command("sessions:purge")
def cmd_sessions_purge():
    """Delete login sessions past their expiry."""
    from app.services.auth import purge_expired_sessions

    removed = run(purge_expired_sessions)
    console.print(f"[green]Removed {removed} expired sessions[/green]")


# =============================================================================
# SEASON COMMANDS
# =============================================================================

@cli.command("seasons:list")
def cmd_seasons_list():
    """List all seasons, newest first."""
    from app.services.seasons import list_seasons

    seasons = run(list_seasons)
    if not seasons:
        console.print("[yellow]No seasons found.[/yellow]")
        return

    table = Table(title="Seasons")
    table.add_column("Label", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Current", justify="center")
    table.add_column("ID", style="dim")
    for s in seasons:
        table.add_row(
            s.label,
            s.start_date.isoformat(),
            s.end_date.isoformat(),
            "[bold green]✓[/]" if s.is_current else "",
            str(s.id),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
