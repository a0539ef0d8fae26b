"""Status command for the storepulse CLI.

`storepulse status` probes the dashboard once (HEAD request) and reports
whether it is reachable. Exit code 0 means online, 1 offline.
"""

from __future__ import annotations

import asyncio

import typer

from storepulse.core.config import DashboardConfig
from storepulse.network.monitor import NetworkState, NetworkStatusMonitor

from .. import helpers
from ..output import console


async def _probe(config: DashboardConfig) -> NetworkState:
    async with helpers.create_probe_client(config) as client:
        source = helpers.create_probe_source(config, client)
        await source.probe()
        with NetworkStatusMonitor(source) as monitor:
            return monitor.state


def status(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output result as JSON"),
) -> None:
    """Check whether the dashboard server is reachable."""
    config = helpers.load_config(console)
    state = asyncio.run(_probe(config))

    if json_output:
        console.print_json(data={"url": config.probe_url, "online": state.is_online})
    elif state.is_online:
        console.print(f"[green]Online[/green] {config.probe_url}")
    else:
        console.print(f"[red]Offline[/red] {config.probe_url} is not reachable")

    if not state.is_online:
        raise typer.Exit(1)
