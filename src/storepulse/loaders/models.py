"""Response models for the dashboard API.

The API speaks camelCase JSON; models accept either the wire alias or the
field name. Unknown fields are ignored so newer servers stay compatible.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Reviews
# =============================================================================


class Platform(str, Enum):
    """Store the review was collected from."""

    GOOGLE_PLAY = "GooglePlay"
    APPLE_STORE = "AppleStore"
    CHROME_EXT = "ChromeExt"


class Sentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class ReviewQuest(str, Enum):
    """Quest category suggested for a review."""

    BUG = "BUG"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    OTHER = "OTHER"


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Review(_ApiModel):
    """One app-store review."""

    id: str = Field(alias="_id")
    name: str
    comment: str
    date: datetime | str
    rating: int = Field(ge=1, le=5)
    sentiment: Sentiment
    quest: ReviewQuest | None = None
    priority: Priority | None = None
    quest_id: str | None = Field(default=None, alias="questId")


class SentimentBreakdown(_ApiModel):
    positive: int = 0
    negative: int = 0


class ReviewOverview(_ApiModel):
    """Aggregate counts shown above the review feed."""

    sentiment_breakdown: SentimentBreakdown = Field(
        default_factory=SentimentBreakdown, alias="sentimentBreakdown"
    )
    platform_breakdown: dict[str, int] = Field(default_factory=dict, alias="platformBreakdown")
    quest_breakdown: dict[str, int] = Field(default_factory=dict, alias="questBreakdown")


class ReviewFilters(_ApiModel):
    """Query filters for the review feed. Unset filters are not sent."""

    platform: Platform | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    sentiment: Sentiment | None = None
    quest: ReviewQuest | None = None
    search: str | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            params[key] = value.value if isinstance(value, Enum) else str(value)
        return params


class ReviewPage(_ApiModel):
    """Response of ``GET /api/reviews``."""

    reviews: list[Review]
    has_more: bool = Field(default=False, alias="hasMore")
    total_count: int = Field(default=0, alias="totalCount")
    overview: ReviewOverview | None = None


# =============================================================================
# Quests
# =============================================================================


class QuestType(str, Enum):
    BUG_FIX = "BUG_FIX"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    IMPROVEMENT = "IMPROVEMENT"
    RESEARCH = "RESEARCH"
    OTHER = "OTHER"


class QuestState(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Quest(_ApiModel):
    """A unit of follow-up work, often created from a review."""

    id: str = Field(alias="_id")
    title: str
    details: str | None = None
    type: QuestType
    priority: Priority
    state: QuestState
    review_id: str | None = Field(default=None, alias="reviewId")


class QuestPage(_ApiModel):
    """Response of ``GET /api/quests``."""

    quests: list[Quest]
    has_more: bool = Field(default=False, alias="hasMore")
    total_count: int = Field(default=0, alias="totalCount")
    overview: dict[str, Any] | None = None


# =============================================================================
# Gamification
# =============================================================================


class Badge(_ApiModel):
    id: str
    name: str
    description: str = ""
    category: str | None = None
    earned_at: datetime | None = Field(default=None, alias="earnedAt")


class Streaks(_ApiModel):
    current_login_streak: int = Field(default=0, alias="currentLoginStreak")
    longest_login_streak: int = Field(default=0, alias="longestLoginStreak")
    last_login_date: datetime | None = Field(default=None, alias="lastLoginDate")


class XPTransaction(_ApiModel):
    amount: int
    action: str
    timestamp: datetime


class GamificationData(_ApiModel):
    """XP, level, badges and streaks for the signed-in user."""

    xp: int = 0
    level: int = 1
    badges: list[Badge] = Field(default_factory=list)
    streaks: Streaks = Field(default_factory=Streaks)
    activity_counts: dict[str, int] = Field(default_factory=dict, alias="activityCounts")
    xp_history: list[XPTransaction] = Field(default_factory=list, alias="xpHistory")


class GamificationResponse(_ApiModel):
    """Response of ``GET /api/gamification``; ``gamificationData`` is required."""

    gamification_data: GamificationData = Field(alias="gamificationData")
