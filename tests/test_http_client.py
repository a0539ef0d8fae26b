"""Tests for storepulse.http.client module."""

import json

import httpx
import pytest

from storepulse.core.config import ApiConfig
from storepulse.core.errors import ApiError, FailureKind, classify
from storepulse.http import DashboardClient


def _client(handler) -> DashboardClient:
    return DashboardClient(
        "http://dashboard.test/",
        headers={"Cookie": "session=abc"},
        transport=httpx.MockTransport(handler),
    )


class TestGetJson:
    @pytest.mark.asyncio
    async def test_returns_decoded_body(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"quests": []})

        async with _client(handler) as client:
            assert await client.get_json("/api/quests") == {"quests": []}

        request = seen[0]
        assert str(request.url) == "http://dashboard.test/api/quests"
        assert request.headers["Cookie"] == "session=abc"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_query_params_skip_unset_values(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            await client.get_json(
                "/api/reviews",
                {"page": 2, "limit": 20, "platform": None, "search": "", "archived": False},
            )

        params = seen[0].url.params
        assert params["page"] == "2"
        assert params["limit"] == "20"
        assert params["archived"] == "false"
        assert "platform" not in params
        assert "search" not in params

    @pytest.mark.asyncio
    async def test_error_uses_server_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": "App does not belong to user"})

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_json("/api/reviews")

        assert exc_info.value.status_code == 403
        assert str(exc_info.value) == "App does not belong to user"

    @pytest.mark.asyncio
    async def test_error_without_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad gateway</html>")

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_json("/api/reviews")

        assert str(exc_info.value) == "HTTP 502: Bad Gateway"

    @pytest.mark.asyncio
    async def test_retry_after_is_captured(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "30"}, json={})

        async with _client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_json("/api/gamification")

        error = classify(exc_info.value)
        assert error.kind is FailureKind.RATE_LIMITED
        assert error.suggested_wait_ms == 30000.0

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(httpx.ConnectError) as exc_info:
                await client.get_json("/api/quests")

        assert classify(exc_info.value).kind is FailureKind.NETWORK

    @pytest.mark.asyncio
    async def test_invalid_json_on_success(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        async with _client(handler) as client:
            with pytest.raises(json.JSONDecodeError) as exc_info:
                await client.get_json("/api/quests")

        assert classify(exc_info.value).kind is FailureKind.VALIDATION


class TestLifecycle:
    def test_from_config(self):
        config = ApiConfig(base_url="https://dash.example.com/", timeout_seconds=3)
        client = DashboardClient.from_config(config)
        assert client.base_url == "https://dash.example.com"

    @pytest.mark.asyncio
    async def test_close_is_repeatable(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        await client.get_json("/api/quests")
        await client.close()
        await client.close()
