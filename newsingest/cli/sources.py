"""Source and category listing commands."""

import typer
from rich.table import Table

from ..db import CategoryRepository, SourceRepository, close_connection_pool, get_connection
from .common import console, load_cli_config


def sources_command(ctx: typer.Context) -> None:
    """List news sources registered by past runs."""
    config = load_cli_config(ctx)

    try:
        with get_connection(config.get_db_config()) as conn:
            sources = SourceRepository().list_all(conn)
    except Exception as e:
        console.print(f"[red]Could not read sources: {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    if not sources:
        console.print("[yellow]No sources registered yet. Run 'newsingest fetch' first.[/yellow]")
        return

    table = Table(title="News Sources")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="magenta")
    table.add_column("Country")
    table.add_column("Language")
    table.add_column("Active", style="yellow")
    table.add_column("Last Fetched", style="dim")

    for source in sources:
        last_fetched = source.last_fetched_at.strftime("%Y-%m-%d %H:%M") if source.last_fetched_at else "never"
        table.add_row(
            source.mediastack_id,
            source.name,
            source.category or "-",
            source.country or "-",
            source.language or "-",
            "✓" if source.is_active else "✗",
            last_fetched,
        )

    console.print(table)


def categories_command(ctx: typer.Context) -> None:
    """List news categories registered by past runs."""
    config = load_cli_config(ctx)

    try:
        with get_connection(config.get_db_config()) as conn:
            categories = CategoryRepository().list_all(conn)
    except Exception as e:
        console.print(f"[red]Could not read categories: {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    if not categories:
        console.print("[yellow]No categories registered yet.[/yellow]")
        return

    table = Table(title="News Categories")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Active", style="yellow")

    for category in categories:
        table.add_row(category.slug, category.name, "✓" if category.is_active else "✗")

    console.print(table)
