"""Feature loaders built on the resilient fetch core."""

from storepulse.loaders.base import LoadState, ResourceLoader
from storepulse.loaders.gamification import GamificationLoader
from storepulse.loaders.quests import QuestLoader
from storepulse.loaders.reviews import ReviewFeedLoader

__all__ = [
    "GamificationLoader",
    "LoadState",
    "QuestLoader",
    "ResourceLoader",
    "ReviewFeedLoader",
]
