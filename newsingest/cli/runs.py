"""Run log and profile listing commands."""

import typer
from rich.table import Table

from ..db import FetchRunRepository, close_connection_pool, get_connection
from .common import console, load_cli_config
from .fetch import STATUS_STYLES


def runs_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-n", help="Number of runs to show", min=1, max=200),
) -> None:
    """List recent fetch runs."""
    config = load_cli_config(ctx)

    try:
        with get_connection(config.get_db_config()) as conn:
            runs = FetchRunRepository().recent(conn, limit=limit)
    except Exception as e:
        console.print(f"[red]Could not read run log: {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    if not runs:
        console.print("[yellow]No fetch runs recorded.[/yellow]")
        return

    table = Table(title="Recent Fetch Runs")
    table.add_column("ID", style="cyan")
    table.add_column("Started", style="dim")
    table.add_column("Trigger")
    table.add_column("Status", style="bold")
    table.add_column("Fetched", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Dup", justify="right")
    table.add_column("Invalid", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Time", justify="right", style="yellow")
    table.add_column("Error", style="red")

    for run in runs:
        style = STATUS_STYLES.get(run.status, "white")
        trigger = run.triggered_by + (f" ({run.profile})" if run.profile else "")
        duration = f"{run.execution_time_ms / 1000:.1f}s" if run.execution_time_ms is not None else "-"
        table.add_row(
            str(run.id),
            run.started_at.strftime("%Y-%m-%d %H:%M:%S"),
            trigger,
            f"[{style}]{run.status.value}[/{style}]",
            str(run.fetched_results),
            str(run.new_articles),
            str(run.duplicate_articles),
            str(run.invalid_articles),
            str(run.failed_articles),
            duration,
            run.error_message or "",
        )

    console.print(table)


def profiles_command(ctx: typer.Context) -> None:
    """List configured fetch profiles."""
    config = load_cli_config(ctx)
    profiles = config.config.profiles

    if not profiles:
        console.print("[yellow]No profiles configured.[/yellow]")
        return

    table = Table(title="Fetch Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters", style="magenta")

    for name, profile in sorted(profiles.items()):
        params = ", ".join(f"{key}={value}" for key, value in profile.params.items())
        table.add_row(name, profile.description, params or "-")

    console.print(table)
