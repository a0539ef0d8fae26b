"""Quest list loader (``GET /api/quests``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from storepulse.core.constants import DEFAULT_PAGE_SIZE
from storepulse.loaders.base import ResourceLoader
from storepulse.loaders.models import QuestPage, QuestState

if TYPE_CHECKING:
    from storepulse.execution.retry import RetryController
    from storepulse.http.client import DashboardClient
    from storepulse.network.monitor import NetworkStatusMonitor

QUESTS_PATH = "/api/quests"


class QuestLoader(ResourceLoader[QuestPage]):
    resource = "quests"

    def __init__(
        self,
        client: DashboardClient,
        monitor: NetworkStatusMonitor,
        controller: RetryController | None = None,
        *,
        auto_retry_on_reconnect: bool = True,
        state: QuestState | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(
            client, monitor, controller, auto_retry_on_reconnect=auto_retry_on_reconnect
        )
        self._state = state
        self._page_size = page_size

    def query_params(self) -> dict[str, Any]:
        return {
            "page": 1,
            "limit": self._page_size,
            "state": self._state.value if self._state else None,
        }

    async def _fetch(self) -> QuestPage:
        payload = await self._client.get_json(QUESTS_PATH, self.query_params())
        return QuestPage.model_validate(payload)
