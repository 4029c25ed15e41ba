"""Connectivity check for the database and the news API."""

import typer

from ..db import close_connection_pool, validate_connection
from ..errors import ConfigurationError
from ..ingestion import FetchClient
from .common import console, load_cli_config


def check_command(ctx: typer.Context) -> None:
    """Test database and MediaStack API connectivity."""
    config = load_cli_config(ctx)
    healthy = True

    try:
        if validate_connection(config.get_db_config()):
            console.print("[green]✅ Database: connected[/green]")
        else:
            console.print("[red]❌ Database: connection failed[/red]")
            healthy = False
    finally:
        close_connection_pool()

    try:
        client = FetchClient(config.config.mediastack, config.get_api_key())
    except ConfigurationError as e:
        console.print(f"[red]❌ MediaStack API: {e}[/red]")
        raise typer.Exit(1)

    result = client.test_connection()
    if result["success"]:
        console.print(f"[green]✅ MediaStack API: {result['message']}[/green]")
    else:
        console.print(f"[red]❌ MediaStack API ({result['status']}): {result['message']}[/red]")
        healthy = False

    if not healthy:
        raise typer.Exit(1)
