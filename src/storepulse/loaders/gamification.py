"""Gamification loader (``GET /api/gamification``)."""

from __future__ import annotations

from storepulse.core.errors import FailureKind
from storepulse.loaders.base import ResourceLoader
from storepulse.loaders.models import GamificationData, GamificationResponse

GAMIFICATION_PATH = "/api/gamification"


class GamificationLoader(ResourceLoader[GamificationData]):
    """Loads XP, level, badges and streaks.

    A response without ``gamificationData`` fails validation and is not
    retried. A 404 usually means the user has no progress recorded yet.
    """

    resource = "gamification"
    default_messages = {
        FailureKind.NOT_FOUND: "Gamification data not found. This might be your first visit.",
        FailureKind.FORBIDDEN: "Access denied. You don't have permission to view this data.",
    }

    async def _fetch(self) -> GamificationData:
        payload = await self._client.get_json(GAMIFICATION_PATH)
        return GamificationResponse.model_validate(payload).gamification_data
