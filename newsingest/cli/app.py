"""Main CLI application."""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from ..config import Config
from ..utils.logging import configure_logging
from .check import check_command
from .fetch import fetch_command
from .init import init_command
from .runs import profiles_command, runs_command
from .sources import categories_command, sources_command

app = typer.Typer(
    name="newsingest",
    help="MediaStack news ingestion pipeline",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (default: $NEWSINGEST_CONFIG or ~/.config/newsingest/config.yaml)",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Load .env and set up logging before any command runs."""
    # Load .env file if it exists
    load_dotenv()
    config = Config(config_path)
    ctx.obj = config

    level, log_format, log_file = log_level, None, None
    if config.config_path.exists():
        try:
            logging_config = config.config.logging
        except ValueError:
            # Reported by the command that needs the config
            logging_config = None
        if logging_config is not None:
            level = level or logging_config.level
            log_format = logging_config.format
            log_file = logging_config.file
    configure_logging(level=level, log_format=log_format, file_path=log_file)


# Register commands
app.command("init")(init_command)
app.command("fetch")(fetch_command)
app.command("check")(check_command)
app.command("runs")(runs_command)
app.command("profiles")(profiles_command)
app.command("sources")(sources_command)
app.command("categories")(categories_command)


if __name__ == "__main__":
    app()
