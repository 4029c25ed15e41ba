"""Fetch command implementation."""

from typing import Optional

import typer
from rich.table import Table

from ..db import close_connection_pool
from ..errors import FetchError, NewsIngestError
from ..models import RunStatus
from ..pipeline import FetchSummary, IngestionOrchestrator
from .common import console, load_cli_config

STATUS_STYLES = {
    RunStatus.SUCCESS: "green",
    RunStatus.PARTIAL_SUCCESS: "yellow",
    RunStatus.FAILED: "red",
    RunStatus.RATE_LIMITED: "red",
}


def print_summary(summary: FetchSummary) -> None:
    """Print summary of a fetch run."""
    style = STATUS_STYLES.get(summary.status, "white")
    table = Table(title=f"Fetch run {summary.run_id or '-'}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Status", f"[{style}]{summary.status.value}[/{style}]")
    table.add_row("Fetched", str(summary.fetched))
    table.add_row("New articles", f"[green]{summary.processed}[/green]")
    table.add_row("Duplicates", str(summary.duplicates))
    table.add_row("Invalid", str(summary.invalid))
    table.add_row("Failed", f"[red]{summary.failed}[/red]" if summary.failed else "0")
    table.add_row("Total available", str(summary.total_results))
    table.add_row("Duration", f"{summary.execution_time_ms / 1000:.1f}s")

    console.print(table)


def fetch_command(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Named parameter set from the config"),
    categories: Optional[str] = typer.Option(None, "--categories", help="Comma-separated list of categories"),
    sources: Optional[str] = typer.Option(None, "--sources", help="Comma-separated list of sources"),
    countries: Optional[str] = typer.Option(None, "--countries", help="Comma-separated list of countries"),
    languages: Optional[str] = typer.Option(None, "--languages", help="Comma-separated list of languages"),
    keywords: Optional[str] = typer.Option(None, "--keywords", help="Keywords to search for"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of articles to fetch", min=1, max=100),
    offset: Optional[int] = typer.Option(None, "--offset", help="Pagination offset", min=0),
    sort: Optional[str] = typer.Option(None, "--sort", help="published_desc, published_asc or popularity"),
    date: Optional[str] = typer.Option(None, "--date", help="Date or range, e.g. 2024-01-01,2024-01-31"),
    triggered_by: str = typer.Option("cli", "--triggered-by", help="Recorded in the run log (cli, cron, ...)"),
) -> None:
    """Fetch one page of news from MediaStack and ingest it."""
    config = load_cli_config(ctx)

    params = {
        "categories": categories,
        "sources": sources,
        "countries": countries,
        "languages": languages,
        "keywords": keywords,
        "limit": limit,
        "offset": offset,
        "sort": sort,
        "date": date,
    }

    console.print("[dim]Starting news fetch from MediaStack...[/dim]")
    try:
        orchestrator = IngestionOrchestrator.from_config(config)
        summary = orchestrator.run_fetch(params, profile=profile, triggered_by=triggered_by)
    except KeyboardInterrupt:
        console.print("\n[yellow]Fetch interrupted by user[/yellow]")
        raise typer.Exit(130)
    except FetchError as e:
        console.print(f"[red]❌ Failed: {e}[/red]")
        raise typer.Exit(1)
    except NewsIngestError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    print_summary(summary)
    console.print(
        f"✅ Fetched {summary.fetched} articles, processed {summary.processed} "
        f"(skipped {summary.skipped}, errored {summary.errored})"
    )
    if summary.status is RunStatus.PARTIAL_SUCCESS:
        console.print(f"[yellow]⚠️  {summary.failed} records failed; see the log for details[/yellow]")
