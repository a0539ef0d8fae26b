"""Rich output formatting for the storepulse CLI.

Tables for review and quest pages, a panel for gamification progress, and
a uniform error renderer driven by ClassifiedError.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from storepulse.core.errors import FailureKind
from storepulse.loaders.models import Sentiment

if TYPE_CHECKING:
    from storepulse.core.errors import ClassifiedError
    from storepulse.loaders.models import GamificationData, QuestPage, ReviewPage

# Shared console; commands print through this instance
console = Console()

COMMENT_PREVIEW_CHARS = 60


class StatusColors:
    """Color mappings for rendered values."""

    SENTIMENT: dict[Sentiment, str] = {
        Sentiment.POSITIVE: "green",
        Sentiment.NEGATIVE: "red",
    }

    FAILURE_KIND: dict[FailureKind, str] = {
        FailureKind.NETWORK: "yellow",
        FailureKind.TIMEOUT: "yellow",
        FailureKind.RATE_LIMITED: "blue",
        FailureKind.SERVER_ERROR: "yellow",
    }

    @classmethod
    def get_failure_color(cls, kind: FailureKind) -> str:
        return cls.FAILURE_KIND.get(kind, "red")


def _preview(text: str, limit: int = COMMENT_PREVIEW_CHARS) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


def create_reviews_table(page: ReviewPage) -> Table:
    table = Table(title=f"Reviews ({len(page.reviews)} of {page.total_count})")
    table.add_column("Rating", justify="center")
    table.add_column("Sentiment")
    table.add_column("Author", style="cyan")
    table.add_column("Comment")
    table.add_column("Quest", style="magenta")
    for review in page.reviews:
        color = StatusColors.SENTIMENT.get(review.sentiment, "white")
        table.add_row(
            "★" * review.rating,
            f"[{color}]{review.sentiment.value.lower()}[/{color}]",
            review.name,
            _preview(review.comment),
            review.quest.value if review.quest else "-",
        )
    return table


def create_quests_table(page: QuestPage) -> Table:
    table = Table(title=f"Quests ({len(page.quests)} of {page.total_count})")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("State")
    for quest in page.quests:
        table.add_row(
            quest.title,
            quest.type.value,
            quest.priority.value,
            quest.state.value,
        )
    return table


def create_gamification_panel(data: GamificationData) -> Panel:
    lines = [
        f"[bold]Level:[/bold] {data.level}",
        f"[bold]XP:[/bold] {data.xp}",
        f"[bold]Badges:[/bold] {len(data.badges)}",
        f"[bold]Login streak:[/bold] {data.streaks.current_login_streak} "
        f"(best {data.streaks.longest_login_streak})",
    ]
    if data.badges:
        lines.append("")
        lines.extend(f"  - {badge.name}" for badge in data.badges)
    return Panel("\n".join(lines), title="Progress", border_style="green")


def error_hints(error: ClassifiedError) -> list[str]:
    """Suggested next steps for a failure."""
    if error.is_auth_error:
        return ["Sign in again and update the session headers in your config file."]
    if error.kind is FailureKind.RATE_LIMITED and error.suggested_wait_ms:
        return [f"Wait {error.suggested_wait_ms / 1000:.0f}s, then run the command again."]
    if error.offers_retry_action:
        return ["Run the command again to retry."]
    return []


def output_error(
    error: ClassifiedError,
    *,
    json_output: bool = False,
    console_instance: Console | None = None,
) -> None:
    """Render a classified failure as rich text or JSON."""
    out = console_instance or console

    if json_output:
        result = {"success": False, **error.to_dict(), "hints": error_hints(error)}
        out.print_json(json.dumps(result, default=str))
        return

    color = StatusColors.get_failure_color(error.kind)
    out.print(f"[{color}]Error [{error.code}]:[/{color}] {error.user_message}")
    if error.message and error.message != error.user_message:
        out.print(f"[dim]{error.message}[/dim]")

    hints = error_hints(error)
    if hints:
        out.print()
        out.print("[dim]Hints:[/dim]")
        for hint in hints:
            out.print(f"  - {hint}")


__all__ = [
    "StatusColors",
    "console",
    "create_gamification_panel",
    "create_quests_table",
    "create_reviews_table",
    "error_hints",
    "output_error",
]
