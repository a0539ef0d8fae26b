"""Tests for storepulse.core.errors classification."""

import asyncio
import json

import httpx
import pydantic
import pytest

from storepulse.core.config import ClassifierConfig
from storepulse.core.errors import (
    ApiError,
    ClassifiedError,
    ErrorClassifier,
    FailureKind,
    classify,
    parse_retry_after,
)
from tests.helpers import api_error


class AbortError(Exception):
    """Stand-in for an aborted request signal."""


class HostileFailure:
    """Raw failure whose every introspection blows up."""

    def __str__(self) -> str:
        raise RuntimeError("no str for you")

    def __getattr__(self, name: str) -> object:
        raise RuntimeError(f"no attribute {name}")


def _status_error(status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://dashboard.test/api/reviews")
    response = httpx.Response(status, headers=headers, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestStatusRules:
    """Structured HTTP statuses win over everything else."""

    def test_401_is_unauthorized(self):
        error = classify(api_error(401, "Unauthorized"))
        assert error.kind is FailureKind.UNAUTHORIZED
        assert error.http_status == 401
        assert error.retryable is False
        assert error.user_message == "Authentication required. Please sign in again."
        assert error.is_auth_error
        assert not error.offers_retry_action

    def test_403_is_forbidden(self):
        error = classify(api_error(403))
        assert error.kind is FailureKind.FORBIDDEN
        assert error.retryable is False
        assert "Access denied" in error.user_message

    def test_404_is_not_found(self):
        error = classify(api_error(404))
        assert error.kind is FailureKind.NOT_FOUND
        assert error.retryable is False
        assert error.offers_retry_action

    def test_429_is_rate_limited_with_floor(self):
        error = classify(api_error(429))
        assert error.kind is FailureKind.RATE_LIMITED
        assert error.retryable is True
        assert error.suggested_wait_ms is None
        assert error.min_delay_ms == 5000.0

    def test_429_uses_retry_after_seconds(self):
        error = classify(api_error(429, retry_after="12"))
        assert error.suggested_wait_ms == 12000.0
        assert error.min_delay_ms == 12000.0

    def test_short_retry_after_keeps_floor(self):
        error = classify(api_error(429, retry_after="1"))
        assert error.suggested_wait_ms == 1000.0
        assert error.min_delay_ms == 5000.0

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_5xx_is_server_error(self, status):
        error = classify(api_error(status))
        assert error.kind is FailureKind.SERVER_ERROR
        assert error.retryable is True

    @pytest.mark.parametrize("status", [400, 422])
    def test_bad_request_is_validation(self, status):
        error = classify(api_error(status))
        assert error.kind is FailureKind.VALIDATION
        assert error.retryable is False

    def test_status_beats_message_text(self):
        error = classify(api_error(401, "network connection lost"))
        assert error.kind is FailureKind.UNAUTHORIZED

    def test_explicit_http_status_takes_precedence(self):
        error = classify(api_error(500), http_status=404)
        assert error.kind is FailureKind.NOT_FOUND
        assert error.http_status == 404

    def test_status_zero_is_network(self):
        error = classify({"status": 0})
        assert error.kind is FailureKind.NETWORK
        assert error.http_status is None

    def test_unlisted_4xx_falls_through(self):
        error = classify(api_error(418, "I'm a teapot"))
        assert error.kind is FailureKind.UNKNOWN
        assert error.http_status == 418

    def test_httpx_status_error(self):
        error = classify(_status_error(429, {"Retry-After": "10"}))
        assert error.kind is FailureKind.RATE_LIMITED
        assert error.suggested_wait_ms == 10000.0

    def test_mapping_with_status_code(self):
        error = classify({"status_code": "503", "error": "Service unavailable"})
        assert error.kind is FailureKind.SERVER_ERROR
        assert error.message == "Service unavailable"

    def test_object_with_status_attribute(self):
        class Response:
            status = 403

        assert classify(Response()).kind is FailureKind.FORBIDDEN


class TestExceptionRules:
    """Timeouts and transport failures recognized by type."""

    @pytest.mark.parametrize(
        "raw",
        [
            TimeoutError(),
            asyncio.TimeoutError(),
            httpx.ReadTimeout("read timed out"),
            httpx.ConnectTimeout("connect timeout"),
            AbortError("The user aborted a request."),
        ],
    )
    def test_timeouts(self, raw):
        error = classify(raw)
        assert error.kind is FailureKind.TIMEOUT
        assert error.retryable is True

    @pytest.mark.parametrize(
        "raw",
        [
            httpx.ConnectError("Connection refused"),
            httpx.RemoteProtocolError("Server disconnected"),
            ConnectionResetError(),
            ConnectionRefusedError("refused"),
        ],
    )
    def test_transport_failures_are_network(self, raw):
        error = classify(raw)
        assert error.kind is FailureKind.NETWORK
        assert error.retryable is True
        assert error.offers_retry_action

    def test_pydantic_validation_error(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            pydantic.TypeAdapter(int).validate_python("not a number")
        error = classify(exc_info.value)
        assert error.kind is FailureKind.VALIDATION
        assert error.retryable is False

    def test_json_decode_error(self):
        error = classify(json.JSONDecodeError("Expecting value", "<html>", 0))
        assert error.kind is FailureKind.VALIDATION


class TestTextRules:
    """Message sniffing is the last tier."""

    @pytest.mark.parametrize(
        "text",
        ["Request timed out", "Gateway Timeout while loading", "deadline exceeded"],
    )
    def test_timeout_text(self, text):
        assert classify(Exception(text)).kind is FailureKind.TIMEOUT

    @pytest.mark.parametrize(
        "text",
        ["Failed to fetch", "NetworkError when attempting to fetch resource", "Connection aborted"],
    )
    def test_network_text(self, text):
        assert classify(Exception(text)).kind is FailureKind.NETWORK

    def test_type_error_mentioning_fetch(self):
        assert classify(TypeError("Failed to fetch")).kind is FailureKind.NETWORK

    def test_plain_string(self):
        error = classify("network unreachable")
        assert error.kind is FailureKind.NETWORK
        assert error.message == "network unreachable"

    def test_custom_patterns(self):
        classifier = ErrorClassifier(network_patterns=[r"socket hang up"])
        assert classifier.classify(Exception("socket hang up")).kind is FailureKind.NETWORK
        assert classifier.classify(Exception("Failed to fetch")).kind is FailureKind.UNKNOWN


class TestUnknown:
    def test_unrecognized_is_unknown_and_not_retryable(self):
        error = classify(ValueError("something odd"))
        assert error.kind is FailureKind.UNKNOWN
        assert error.retryable is False
        assert error.code == "F999"

    def test_unknown_retryable_per_call(self):
        error = classify(ValueError("something odd"), unknown_retryable=True)
        assert error.retryable is True

    def test_idempotent_classifier(self):
        classifier = ErrorClassifier(idempotent=True)
        assert classifier.classify(ValueError("odd")).retryable is True

    def test_unknown_retryable_does_not_touch_known_kinds(self):
        error = classify(api_error(401), unknown_retryable=True)
        assert error.retryable is False


class TestTotality:
    """Every input yields exactly one ClassifiedError."""

    @pytest.mark.parametrize(
        "raw",
        [None, "", 0, 42, 3.5, [], {}, {"status": "abc"}, object(), b"bytes", Exception()],
    )
    def test_odd_values(self, raw):
        error = classify(raw)
        assert isinstance(error, ClassifiedError)
        assert error.user_message

    def test_hostile_object(self):
        error = classify(HostileFailure())
        assert error.kind is FailureKind.UNKNOWN
        assert "HostileFailure" in error.message

    def test_every_status_code(self):
        for status in range(0, 600):
            error = classify(api_error(status))
            assert isinstance(error.kind, FailureKind)
            assert error.user_message

    def test_every_status_code_without_exception(self):
        for status in range(0, 600):
            error = classify(object(), http_status=status)
            assert isinstance(error.kind, FailureKind)

    def test_none_has_default_message(self):
        error = classify(None)
        assert error.kind is FailureKind.UNKNOWN
        assert error.message == FailureKind.UNKNOWN.default_message


class TestOverrides:
    def test_retryable_override(self):
        error = classify(api_error(500), retryable=False)
        assert error.kind is FailureKind.SERVER_ERROR
        assert error.retryable is False

    def test_retryable_override_on_classified_input(self):
        original = classify(api_error(404))
        error = classify(original, retryable=True)
        assert error.kind is FailureKind.NOT_FOUND
        assert error.retryable is True

    def test_classified_input_passes_through(self):
        original = classify(api_error(503))
        assert classify(original) is original

    def test_message_overrides(self):
        classifier = ErrorClassifier(
            messages={FailureKind.NOT_FOUND: "No gamification data yet."}
        )
        assert classifier.classify(api_error(404)).user_message == "No gamification data yet."
        assert classifier.classify(api_error(500)).user_message == (
            FailureKind.SERVER_ERROR.default_message
        )

    def test_blank_override_is_ignored(self):
        classifier = ErrorClassifier(messages={FailureKind.NOT_FOUND: "  "})
        assert classifier.user_message_for(FailureKind.NOT_FOUND) == (
            FailureKind.NOT_FOUND.default_message
        )

    def test_from_config(self):
        config = ClassifierConfig(messages={FailureKind.UNAUTHORIZED: "Session expired."})
        classifier = ErrorClassifier.from_config(config, idempotent=True)
        assert classifier.classify(api_error(401)).user_message == "Session expired."
        assert classifier.idempotent is True


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("120") == 120000.0

    def test_missing(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None

    def test_garbage(self):
        assert parse_retry_after("soon-ish") is None

    def test_past_http_date(self):
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    def test_api_error_without_header(self):
        error = classify(ApiError("slow down", status_code=429))
        assert error.suggested_wait_ms is None
