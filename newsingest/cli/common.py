"""Helpers shared by CLI commands."""

import typer
from rich.console import Console

from ..config import Config

console = Console()


def load_cli_config(ctx: typer.Context) -> Config:
    """Config from the app callback, with readable errors for a missing or broken file."""
    config: Config = ctx.obj if isinstance(ctx.obj, Config) else Config()
    try:
        config.config
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config.config_path}. Run 'newsingest init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config
