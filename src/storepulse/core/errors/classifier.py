"""ErrorClassifier implementation.

Maps any raw failure (exception, message string, response-like object, HTTP
status) onto exactly one ClassifiedError. Structured signals are checked
first; message text sniffing is the last tier before the UNKNOWN fallback.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

import httpx
import pydantic

from storepulse.core.constants import TRUNCATE_ERROR_MESSAGE_CHARS
from storepulse.core.logging import get_logger

from .codes import FailureKind
from .exceptions import ApiError
from .models import ClassifiedError

if TYPE_CHECKING:
    from storepulse.core.config import ClassifierConfig

_logger = get_logger("errors")


# =============================================================================
# Default pattern strings, kept at module scope as reviewable data.
# =============================================================================

_DEFAULT_TIMEOUT_PATTERNS: list[str] = [
    r"timed?\s*out",
    r"timeout",
    r"deadline exceeded",
]

_DEFAULT_NETWORK_PATTERNS: list[str] = [
    r"fetch",
    r"network",
    r"connection",
]

_VALIDATION_STATUSES = frozenset({400, 422})

_NAMED_TIMEOUTS = frozenset({"AbortError", "TimeoutError"})
_NAMED_NETWORK = frozenset({"NetworkError"})


def _compile_patterns(strings: list[str]) -> re.Pattern[str]:
    """Merge regex strings into one case-insensitive alternation."""
    return re.compile("|".join(f"(?:{p})" for p in strings), re.IGNORECASE)


def _describe(raw: object) -> str:
    """Best-effort technical description of a raw failure."""
    if raw is None:
        return ""
    if isinstance(raw, str):
        text = raw
    elif isinstance(raw, Mapping):
        detail = raw.get("message") or raw.get("error")
        text = str(detail) if detail else str(dict(raw))
    elif isinstance(raw, BaseException):
        text = str(raw) or type(raw).__name__
    else:
        text = str(raw)
    return text.strip()[:TRUNCATE_ERROR_MESSAGE_CHARS]


def _coerce_status(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _extract_status(raw: object) -> int | None:
    """Pull an HTTP status out of whatever the operation raised."""
    if isinstance(raw, ApiError):
        return raw.status_code
    if isinstance(raw, httpx.HTTPStatusError):
        return raw.response.status_code
    if isinstance(raw, Mapping):
        for key in ("status", "status_code"):
            status = _coerce_status(raw.get(key))
            if status is not None:
                return status
        return None
    for attr in ("status_code", "status"):
        status = _coerce_status(getattr(raw, attr, None))
        if status is not None:
            return status
    return None


def _extract_retry_after(raw: object) -> str | None:
    if isinstance(raw, ApiError):
        return raw.retry_after
    if isinstance(raw, httpx.HTTPStatusError):
        return raw.response.headers.get("Retry-After")
    if isinstance(raw, Mapping):
        value = raw.get("retry_after")
        return str(value) if value is not None else None
    return None


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header into milliseconds.

    Accepts delta-seconds ("120") or an HTTP date. Dates in the past give 0.

    Returns:
        Milliseconds to wait, or None if the value is missing or unparseable.
    """
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value) * 1000.0
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    seconds = (when - datetime.now(UTC)).total_seconds()
    return max(seconds, 0.0) * 1000.0


# =============================================================================
# Error Classifier
# =============================================================================


class ErrorClassifier:
    """Classifies raw failures into the FailureKind taxonomy.

    Classification is total: every input yields exactly one ClassifiedError
    and ``classify`` never raises.

    Example:
        classifier = ErrorClassifier()
        error = classifier.classify(exc)
        if error.retryable:
            ...
    """

    def __init__(
        self,
        *,
        idempotent: bool = False,
        messages: Mapping[FailureKind, str] | None = None,
        timeout_patterns: list[str] | None = None,
        network_patterns: list[str] | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            idempotent: Default retry policy for UNKNOWN failures. Only
                operations that are safe to repeat should set this.
            messages: User-facing message overrides per kind.
            timeout_patterns: Regexes that mark message text as a timeout.
            network_patterns: Regexes that mark message text as a network
                failure.
        """
        self.idempotent = idempotent
        self._messages = {k: v for k, v in (messages or {}).items() if v and v.strip()}
        self._timeout_re = _compile_patterns(timeout_patterns or _DEFAULT_TIMEOUT_PATTERNS)
        self._network_re = _compile_patterns(network_patterns or _DEFAULT_NETWORK_PATTERNS)

    @classmethod
    def from_config(
        cls, config: ClassifierConfig, *, idempotent: bool = False
    ) -> ErrorClassifier:
        """Create a classifier from a ClassifierConfig."""
        return cls(idempotent=idempotent, messages=config.messages)

    def user_message_for(self, kind: FailureKind) -> str:
        return self._messages.get(kind, kind.default_message)

    def classify(
        self,
        raw: object,
        http_status: int | None = None,
        *,
        unknown_retryable: bool | None = None,
        retryable: bool | None = None,
    ) -> ClassifiedError:
        """Classify a raw failure.

        Rules, first match wins:
        1. 401 / 403 -> UNAUTHORIZED / FORBIDDEN
        2. 404 -> NOT_FOUND
        3. 429 -> RATE_LIMITED (with Retry-After as suggested wait)
        4. >= 500 -> SERVER_ERROR; 400 / 422 or an invalid payload -> VALIDATION
        5. Abort / timeout signal -> TIMEOUT
        6. Network exception or message heuristics -> NETWORK
        7. Otherwise -> UNKNOWN

        Args:
            raw: Whatever the operation raised (exception, string, mapping,
                response-like object).
            http_status: Status of a completed-but-unsuccessful response.
                Takes precedence over any status found on ``raw``.
            unknown_retryable: Retry policy for UNKNOWN; defaults to the
                classifier's ``idempotent`` setting.
            retryable: Per-call override of the kind's retry default.

        Returns:
            ClassifiedError for the failure.
        """
        try:
            if isinstance(raw, ClassifiedError):
                result = raw
            else:
                result = self._classify(raw, http_status, unknown_retryable)
        except Exception:
            # Raw values with hostile __str__/__getattr__ still get a result
            result = ClassifiedError(
                kind=FailureKind.UNKNOWN,
                message=f"Unclassifiable failure of type {type(raw).__name__}",
                user_message=self.user_message_for(FailureKind.UNKNOWN),
                http_status=None,
                retryable=self.idempotent if unknown_retryable is None else unknown_retryable,
                cause=raw,
            )

        if retryable is not None and retryable != result.retryable:
            result = ClassifiedError(
                kind=result.kind,
                message=result.message,
                user_message=result.user_message,
                http_status=result.http_status,
                retryable=retryable,
                cause=result.cause,
                suggested_wait_ms=result.suggested_wait_ms,
            )

        _logger.debug(
            "error_classified",
            kind=result.kind.value,
            code=result.code,
            http_status=result.http_status,
            retryable=result.retryable,
            message=result.message,
        )
        return result

    def _classify(
        self,
        raw: object,
        http_status: int | None,
        unknown_retryable: bool | None,
    ) -> ClassifiedError:
        status = http_status if http_status is not None else _extract_status(raw)
        message = _describe(raw)

        kind = self._kind_for_status(status, raw)
        if kind is None:
            kind = self._kind_for_exception(raw)
        if kind is None:
            kind = self._kind_for_text(message)

        if kind is FailureKind.UNKNOWN:
            is_retryable = self.idempotent if unknown_retryable is None else unknown_retryable
        else:
            is_retryable = kind.retryable

        suggested_wait_ms = None
        if kind is FailureKind.RATE_LIMITED:
            suggested_wait_ms = parse_retry_after(_extract_retry_after(raw))

        if not message:
            message = f"HTTP {status}" if status else kind.default_message

        return ClassifiedError(
            kind=kind,
            message=message,
            user_message=self.user_message_for(kind),
            http_status=status if status else None,
            retryable=is_retryable,
            cause=raw,
            suggested_wait_ms=suggested_wait_ms,
        )

    def _kind_for_status(self, status: int | None, raw: object) -> FailureKind | None:
        """Rules 1-4: structured status codes and payload validation."""
        if status == 401:
            return FailureKind.UNAUTHORIZED
        if status == 403:
            return FailureKind.FORBIDDEN
        if status == 404:
            return FailureKind.NOT_FOUND
        if status == 429:
            return FailureKind.RATE_LIMITED
        if status is not None and status >= 500:
            return FailureKind.SERVER_ERROR
        if status in _VALIDATION_STATUSES:
            return FailureKind.VALIDATION
        if isinstance(raw, (pydantic.ValidationError, json.JSONDecodeError)):
            return FailureKind.VALIDATION
        if status == 0:
            # Browsers and proxies report status 0 when no response arrived
            return FailureKind.NETWORK
        return None

    def _kind_for_exception(self, raw: object) -> FailureKind | None:
        """Rules 5-6 using exception types only."""
        if isinstance(raw, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
            return FailureKind.TIMEOUT
        if isinstance(raw, BaseException) and type(raw).__name__ in _NAMED_TIMEOUTS:
            return FailureKind.TIMEOUT
        if isinstance(raw, (httpx.TransportError, ConnectionError)):
            return FailureKind.NETWORK
        if isinstance(raw, BaseException) and type(raw).__name__ in _NAMED_NETWORK:
            return FailureKind.NETWORK
        return None

    def _kind_for_text(self, message: str) -> FailureKind:
        """Rules 5-7 using message text, the degrading fallback tier."""
        if message and self._timeout_re.search(message):
            return FailureKind.TIMEOUT
        if message and self._network_re.search(message):
            return FailureKind.NETWORK
        return FailureKind.UNKNOWN


_default_classifier = ErrorClassifier()


def classify(
    raw: object,
    http_status: int | None = None,
    *,
    unknown_retryable: bool | None = None,
    retryable: bool | None = None,
) -> ClassifiedError:
    """Classify a raw failure with the default classifier."""
    return _default_classifier.classify(
        raw,
        http_status,
        unknown_retryable=unknown_retryable,
        retryable=retryable,
    )
