"""Fetch commands for the storepulse CLI.

- `storepulse fetch reviews` - Show the review feed
- `storepulse fetch quests` - Show the quest list
- `storepulse fetch gamification` - Show XP, level and badges

Each command probes reachability once, then loads through the same
resilient fetch path a long-running embedder would use: offline fast-fail,
retry with backoff, and classified error rendering.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import typer
from pydantic import BaseModel
from rich.console import RenderableType

from storepulse.core.config import DashboardConfig
from storepulse.core.errors import ClassifiedError
from storepulse.core.logging import get_logger
from storepulse.loaders.base import ResourceLoader
from storepulse.loaders.gamification import GamificationLoader
from storepulse.loaders.models import (
    Platform,
    QuestState,
    ReviewFilters,
    ReviewQuest,
    Sentiment,
)
from storepulse.loaders.quests import QuestLoader
from storepulse.loaders.reviews import ReviewFeedLoader
from storepulse.network.monitor import NetworkStatusMonitor

from .. import helpers
from ..output import (
    console,
    create_gamification_panel,
    create_quests_table,
    create_reviews_table,
    output_error,
)

_logger = get_logger("cli.fetch")

fetch_app = typer.Typer(name="fetch", help="Fetch dashboard data", no_args_is_help=True)


def _announce_retry(attempt: int, error: ClassifiedError, delay_ms: float) -> None:
    console.print(
        f"[yellow]{error.user_message}[/yellow] "
        f"[dim]Retrying in {delay_ms / 1000:.1f}s (attempt {attempt})...[/dim]"
    )


async def _load(
    config: DashboardConfig,
    loader_cls: type[ResourceLoader[Any]],
    quiet_retries: bool,
    **loader_kwargs: Any,
) -> tuple[Any, ClassifiedError | None]:
    """Probe, then load one resource. Returns (data, error)."""
    async with helpers.create_probe_client(config) as probe_client:
        source = helpers.create_probe_source(config, probe_client)
        await source.probe()
        with NetworkStatusMonitor(source) as monitor:
            async with helpers.create_client(config) as client:
                loader = loader_cls.from_config(
                    config,
                    client,
                    monitor,
                    on_retry=None if quiet_retries else _announce_retry,
                    **loader_kwargs,
                )
                async with loader:
                    await loader.load()
                    state = loader.state
    return state.data, state.error


def _run(
    loader_cls: type[ResourceLoader[Any]],
    render: Callable[[Any], RenderableType],
    json_output: bool,
    **loader_kwargs: Any,
) -> None:
    config = helpers.load_config(console)
    data, error = asyncio.run(_load(config, loader_cls, json_output, **loader_kwargs))

    if error is not None:
        output_error(error, json_output=json_output)
        raise typer.Exit(1)

    if json_output:
        payload = data.model_dump(mode="json", by_alias=True) if isinstance(data, BaseModel) else data
        console.print_json(data=payload)
        return
    console.print(render(data))


@fetch_app.command()
def reviews(
    platform: Platform | None = typer.Option(None, "--platform", help="Store to show"),
    rating: int | None = typer.Option(None, "--rating", min=1, max=5, help="Star rating"),
    sentiment: Sentiment | None = typer.Option(None, "--sentiment", help="Review sentiment"),
    quest: ReviewQuest | None = typer.Option(None, "--quest", help="Suggested quest type"),
    page: int = typer.Option(1, "--page", min=1, help="Page to fetch"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output result as JSON"),
) -> None:
    """Show the review feed."""
    filters = ReviewFilters(platform=platform, rating=rating, sentiment=sentiment, quest=quest)
    _run(
        ReviewFeedLoader,
        create_reviews_table,
        json_output,
        filters=filters,
        page=page,
    )


@fetch_app.command()
def quests(
    state: QuestState | None = typer.Option(None, "--state", help="Quest state"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output result as JSON"),
) -> None:
    """Show the quest list."""
    _run(QuestLoader, create_quests_table, json_output, state=state)


@fetch_app.command()
def gamification(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output result as JSON"),
) -> None:
    """Show XP, level, badges and streaks."""
    _run(GamificationLoader, create_gamification_panel, json_output)


__all__ = ["fetch_app", "gamification", "quests", "reviews"]
