"""Dashboard HTTP client using httpx.

Thin JSON client for the dashboard API. Completed non-2xx responses raise
ApiError carrying the status and any Retry-After header; transport errors
and timeouts propagate as httpx exceptions. Both are left for the error
classifier to interpret.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from storepulse.core.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    TRUNCATE_ERROR_MESSAGE_CHARS,
)
from storepulse.core.errors import ApiError
from storepulse.core.logging import get_logger

if TYPE_CHECKING:
    from storepulse.core.config import ApiConfig

_logger = get_logger("http")

QueryParams = Mapping[str, str | int | float | bool | None]


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's ``{"error": ...}`` text, else a status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("error") or body.get("message")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()[:TRUNCATE_ERROR_MESSAGE_CHARS]
    return f"HTTP {response.status_code}: {response.reason_phrase}"


def _clean_params(params: QueryParams | None) -> dict[str, str]:
    """Drop unset values and render the rest as query strings."""
    if not params:
        return {}
    cleaned: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned


class DashboardClient:
    """Async JSON client for the dashboard API.

    Example:
        async with DashboardClient("https://dashboard.example.com") as client:
            data = await client.get_json("/api/reviews", {"page": 1})
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Dashboard server URL.
            timeout_seconds: Per-request timeout.
            headers: Extra headers sent with every request.
            transport: Optional httpx transport (e.g., httpx.MockTransport).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._headers = dict(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DashboardClient:
        """Create a client from an ApiConfig."""
        return cls(
            config.base_url,
            timeout_seconds=config.timeout_seconds,
            headers=config.headers,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(
                    self._timeout,
                    connect=min(self._timeout, DEFAULT_CONNECT_TIMEOUT_SECONDS),
                ),
                headers={"Accept": "application/json", **self._headers},
                transport=self._transport,
            )
        return self._client

    async def get_json(self, path: str, params: QueryParams | None = None) -> Any:
        """GET a JSON document.

        Args:
            path: Path relative to the base URL (e.g., "/api/quests").
            params: Query parameters; None and empty values are omitted.

        Returns:
            The decoded JSON body.

        Raises:
            ApiError: The server answered with a non-2xx status.
            httpx.TimeoutException: The request timed out.
            httpx.TransportError: The server could not be reached.
            json.JSONDecodeError: A 2xx body was not valid JSON.
        """
        client = self._get_client()
        response = await client.get(path, params=_clean_params(params))

        if not response.is_success:
            message = _error_message(response)
            _logger.debug(
                "request_failed",
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise ApiError(
                message,
                status_code=response.status_code,
                retry_after=response.headers.get("Retry-After"),
            )

        _logger.debug("request_succeeded", path=path, status_code=response.status_code)
        return response.json()

    async def close(self) -> None:
        """Close the pooled httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> DashboardClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
