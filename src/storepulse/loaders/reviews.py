"""Review feed loader (``GET /api/reviews``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from storepulse.core.constants import DEFAULT_PAGE_SIZE
from storepulse.core.logging import get_logger
from storepulse.loaders.base import ResourceLoader
from storepulse.loaders.models import ReviewFilters, ReviewPage

if TYPE_CHECKING:
    from storepulse.execution.retry import RetryController
    from storepulse.http.client import DashboardClient
    from storepulse.network.monitor import NetworkStatusMonitor

_logger = get_logger("loader.reviews")

REVIEWS_PATH = "/api/reviews"


class ReviewFeedLoader(ResourceLoader[ReviewPage]):
    """Paginated, filterable review feed.

    ``load()`` fetches the first page and replaces the feed; ``load_more()``
    appends the next page. A failed ``load_more()`` stays pending, so the next
    ``load()`` (including a reload after reconnecting) retries that same page
    instead of refetching one already in the feed.
    """

    resource = "reviews"

    def __init__(
        self,
        client: DashboardClient,
        monitor: NetworkStatusMonitor,
        controller: RetryController | None = None,
        *,
        auto_retry_on_reconnect: bool = True,
        filters: ReviewFilters | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
    ) -> None:
        super().__init__(
            client, monitor, controller, auto_retry_on_reconnect=auto_retry_on_reconnect
        )
        self._filters = filters or ReviewFilters()
        self._page_size = page_size
        self._first_page = page
        self._page = page
        self._pending_page: int | None = None

    @property
    def filters(self) -> ReviewFilters:
        return self._filters

    @property
    def page(self) -> int:
        """Last page merged into the feed."""
        return self._page

    @property
    def pending_page(self) -> int | None:
        """Page a ``load_more()`` is fetching or failed to fetch."""
        return self._pending_page

    def _request_page(self) -> int:
        return self._pending_page if self._pending_page is not None else self._first_page

    def query_params(self) -> dict[str, Any]:
        return {
            "page": self._request_page(),
            "limit": self._page_size,
            **self._filters.to_params(),
        }

    async def _fetch(self) -> ReviewPage:
        payload = await self._client.get_json(REVIEWS_PATH, self.query_params())
        return ReviewPage.model_validate(payload)

    def _merge(self, previous: ReviewPage | None, fetched: ReviewPage) -> ReviewPage:
        appending = self._pending_page is not None and previous is not None
        self._page = self._request_page()
        self._pending_page = None
        if not appending:
            return fetched
        return fetched.model_copy(update={"reviews": [*previous.reviews, *fetched.reviews]})

    async def refresh(self) -> ReviewPage | None:
        """Reload the feed from its first page, dropping a pending page."""
        self._pending_page = None
        return await super().refresh()

    async def set_filters(self, filters: ReviewFilters) -> ReviewPage | None:
        """Replace the filters and reload from the first page.

        A load in flight with the old filters is superseded.
        """
        self._filters = filters
        self._first_page = 1
        self._page = 1
        self._data = None
        _logger.debug("filters_changed", filters=filters.to_params())
        return await self.refresh()

    async def load_more(self) -> ReviewPage | None:
        """Append the next page if the server reported more."""
        if self._loading or self._data is None or not self._data.has_more:
            return self._data
        self._pending_page = self._page + 1
        return await self.load()
