"""Shared CLI state and utilities.

Holds the global option state set by the typer callback (logging options,
config path) and the factories commands use to build clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import httpx
import typer
from rich.console import Console

from storepulse.core.config import DashboardConfig
from storepulse.core.errors import ConfigError
from storepulse.core.logging import configure_logging, get_logger
from storepulse.http.client import DashboardClient
from storepulse.network.sources import ProbeConnectivitySource

_logger = get_logger("cli")


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """CLI logging state collected from the global options."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    file: Path | None = None
    format: Literal["json", "console", "both"] = "console"
    explicit: bool = False
    configured: bool = False


_log_config = CliLoggingConfig()


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]
    _log_config.explicit = True


def set_log_file(path: Path | None) -> None:
    """Set the log file path.

    Args:
        path: Path for log file output, or None to disable file logging.
    """
    _log_config.file = path
    if path:
        _log_config.explicit = True


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]
    _log_config.explicit = True


def get_log_level() -> str:
    return _log_config.level


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options (once per session).

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=_log_config.level,
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except (ValueError, AttributeError) as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def apply_config_logging(config: DashboardConfig, console: Console) -> None:
    """Use the config file's logging section unless CLI options were given."""
    if _log_config.explicit:
        return
    try:
        configure_logging(
            level=config.logging.level,
            format=config.logging.format,
            file_path=config.logging.file_path,
        )
    except ValueError as e:
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset CLI logging state (primarily for testing)."""
    global _log_config
    _log_config = CliLoggingConfig()


# =============================================================================
# Configuration
# =============================================================================

_config_path: Path | None = None


def set_config_path(path: Path | None) -> None:
    global _config_path
    _config_path = path


def load_config(console: Console) -> DashboardConfig:
    """Load the configuration named by --config, or defaults.

    Raises:
        typer.Exit: If the config file cannot be loaded.
    """
    if _config_path is None:
        return DashboardConfig()
    try:
        config = DashboardConfig.from_yaml(_config_path)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2) from None
    apply_config_logging(config, console)
    _logger.debug("config_loaded", path=str(_config_path))
    return config


# =============================================================================
# HTTP factories
# =============================================================================

# Tests install an httpx.MockTransport here
_http_transport: httpx.AsyncBaseTransport | None = None


def set_http_transport(transport: httpx.AsyncBaseTransport | None) -> None:
    global _http_transport
    _http_transport = transport


def create_client(config: DashboardConfig) -> DashboardClient:
    return DashboardClient.from_config(config.api, transport=_http_transport)


def create_probe_client(config: DashboardConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.network.probe_timeout_seconds,
        headers=config.api.headers,
        transport=_http_transport,
    )


def create_probe_source(
    config: DashboardConfig, client: httpx.AsyncClient
) -> ProbeConnectivitySource:
    return ProbeConnectivitySource(
        config.probe_url,
        interval_seconds=config.network.probe_interval_seconds,
        timeout_seconds=config.network.probe_timeout_seconds,
        client=client,
    )


__all__ = [
    "CliLoggingConfig",
    "apply_config_logging",
    "configure_global_logging",
    "create_client",
    "create_probe_client",
    "create_probe_source",
    "get_log_level",
    "load_config",
    "reset_logging_state",
    "set_config_path",
    "set_http_transport",
    "set_log_file",
    "set_log_format",
    "set_log_level",
]
