"""storepulse CLI.

Package structure:
    cli/
    ├── __init__.py           # This file - app assembly and global options
    ├── helpers.py            # Shared state, config loading, client factories
    ├── output.py             # Rich formatting
    └── commands/
        ├── fetch.py          # fetch reviews|quests|gamification
        └── status.py         # status command
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from storepulse import __version__

from . import helpers as helpers
from .commands import fetch_app, status
from .helpers import (
    configure_global_logging,
    set_config_path,
    set_log_file,
    set_log_format,
    set_log_level,
)
from .output import console

# =============================================================================
# Typer app definition
# =============================================================================

app = typer.Typer(
    name="storepulse",
    help="Resilient client for the app-review and quest dashboard",
    add_completion=False,
    no_args_is_help=True,
)


# =============================================================================
# Global option callbacks
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"storepulse v{__version__}")
        raise typer.Exit()


def log_level_callback(value: str | None) -> str | None:
    if value:
        set_log_level(value)
    return value


def log_file_callback(value: Path | None) -> Path | None:
    if value:
        set_log_file(value)
    return value


def log_format_callback(value: str | None) -> str | None:
    if value:
        set_log_format(value)
    return value


def config_callback(value: Path | None) -> Path | None:
    set_config_path(value)
    return value


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            callback=config_callback,
            help="Path to a YAML configuration file",
            envvar="STOREPULSE_CONFIG",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-L",
            callback=log_level_callback,
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="STOREPULSE_LOG_LEVEL",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            callback=log_file_callback,
            help="Path for log file output",
        ),
    ] = None,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            callback=log_format_callback,
            help="Log format: json, console, or both",
        ),
    ] = None,
) -> None:
    """storepulse - watch app reviews, quests and progress from the terminal."""
    configure_global_logging(console)


# =============================================================================
# Command registration
# =============================================================================

app.command()(status)
app.add_typer(fetch_app)


__all__ = [
    "app",
    "console",
    "main",
]
