"""Init command implementation."""

from typing import Dict

import typer
from rich.panel import Panel

from ..config import Config, ConfigModel, FetchProfile, save_config
from ..db import init_database, validate_connection
from .common import console, load_cli_config


def create_default_profiles() -> Dict[str, FetchProfile]:
    """Sample fetch profiles."""
    return {
        "headlines": FetchProfile(
            description="Latest general headlines in English",
            params={"categories": "general", "limit": 50},
        ),
        "business": FetchProfile(
            description="Business news from the US and UK",
            params={"categories": "business", "countries": "us,gb", "limit": 100},
        ),
        "technology": FetchProfile(
            description="Technology and science news",
            params={"categories": "technology,science", "limit": 100},
        ),
    }


def init_command(
    ctx: typer.Context,
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsingest", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsingest", "--db-user", help="Database user"),
    seed_profiles: bool = typer.Option(
        True,
        "--seed-profiles/--no-seed-profiles",
        help="Add sample fetch profiles",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("newsingest - Initialization", style="bold blue"))

    config: Config = ctx.obj if isinstance(ctx.obj, Config) else Config()
    config_path = config.config_path

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path} (use --force to overwrite)[/yellow]")
        model = load_cli_config(ctx).config
    else:
        model = ConfigModel(
            postgres={
                "host": db_host,
                "port": db_port,
                "database": db_name,
                "user": db_user,
                "password_env": "NEWSINGEST_DB_PASSWORD",
            },
            profiles=create_default_profiles() if seed_profiles else {},
        )
        save_config(model, config_path)
        console.print(f"✅ Created config: {config_path}")

    # Validate database connection
    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = Config(config_path, model=model).get_db_config()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export NEWSINGEST_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    # Initialize database schema
    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ newsingest initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export NEWSINGEST_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set API key: [bold]export MEDIASTACK_API_KEY=your_key[/bold]\n"
            f"3. Run: [bold]newsingest fetch --profile headlines[/bold]",
            style="green",
        )
    )
