"""Pytest fixtures for storepulse tests."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from storepulse.network import ManualConnectivitySource, NetworkStatusMonitor


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging and CLI state before and after each test."""
    import storepulse.cli.helpers as helpers

    helpers.reset_logging_state()
    helpers.set_config_path(None)
    helpers.set_http_transport(None)

    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    helpers.set_config_path(None)
    helpers.set_http_transport(None)
    structlog.reset_defaults()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)


@pytest.fixture
def source() -> ManualConnectivitySource:
    """An online, manually driven connectivity source."""
    return ManualConnectivitySource(online=True)


@pytest.fixture
def monitor(source: ManualConnectivitySource) -> Generator[NetworkStatusMonitor, None, None]:
    """A started monitor bound to ``source``."""
    mon = NetworkStatusMonitor(source)
    mon.start()
    yield mon
    mon.dispose()


@pytest.fixture
def sample_yaml_config(tmp_path: Path) -> Path:
    """Create a sample YAML config file with fast retries."""
    config_path = tmp_path / "storepulse.yaml"
    config_path.write_text(
        "api:\n"
        "  base_url: http://dashboard.test\n"
        "retry:\n"
        "  max_attempts: 2\n"
        "  base_delay_ms: 1\n"
        "network:\n"
        "  auto_retry_on_reconnect: false\n"
    )
    return config_path
