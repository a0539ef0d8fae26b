"""Failure kinds and their retry profiles.

Failure Taxonomy
================

Every failure surfaced by the fetch core is one of nine kinds. Members are
declared in the order a classifier must check them, most specific first.

    | Kind | Code | Retryable | Min Delay | Retry Action |
    |------|------|-----------|-----------|--------------|
    | NETWORK | F100 | Yes | - | Yes |
    | TIMEOUT | F101 | Yes | - | Yes |
    | UNAUTHORIZED | F200 | No | - | No |
    | FORBIDDEN | F201 | No | - | No |
    | NOT_FOUND | F300 | No | - | Yes |
    | RATE_LIMITED | F400 | Yes | 5s | Yes |
    | SERVER_ERROR | F500 | Yes | - | Yes |
    | VALIDATION | F600 | No | - | Yes |
    | UNKNOWN | F999 | Caller* | - | Yes |

    *UNKNOWN is retryable only when the caller marks its operation idempotent.

Codes are stable identifiers for logs and rendering; the retry flag is only a
default and can be overridden per call.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from storepulse.core.constants import RATE_LIMIT_MIN_DELAY_MS


class KindProfile(NamedTuple):
    """Static behavior attached to a FailureKind.

    Attributes:
        code: Stable identifier (e.g., "F100").
        default_message: Ready-to-render user-facing text.
        retryable: Whether re-attempting the same operation may succeed.
        min_delay_ms: Backoff floor applied before retrying this kind.
    """

    code: str
    default_message: str
    retryable: bool
    min_delay_ms: float = 0.0


class FailureKind(str, Enum):
    """Closed set of failure kinds, ordered by classification specificity."""

    NETWORK = "network"
    """The request never reached the server (offline, DNS, refused)."""

    TIMEOUT = "timeout"
    """The request was aborted after its deadline."""

    UNAUTHORIZED = "unauthorized"
    """HTTP 401 - the session is missing or expired."""

    FORBIDDEN = "forbidden"
    """HTTP 403 - the session lacks permission for the resource."""

    NOT_FOUND = "not_found"
    """HTTP 404 - the resource does not exist."""

    RATE_LIMITED = "rate_limited"
    """HTTP 429 - the server asked the client to slow down."""

    SERVER_ERROR = "server_error"
    """HTTP 5xx - the server failed to handle a valid request."""

    VALIDATION = "validation"
    """The request or the response payload was rejected as malformed."""

    UNKNOWN = "unknown"
    """Anything no other rule recognized."""

    @property
    def code(self) -> str:
        """Stable code string (e.g., 'F500')."""
        return _PROFILES[self].code

    @property
    def default_message(self) -> str:
        return _PROFILES[self].default_message

    @property
    def retryable(self) -> bool:
        return _PROFILES[self].retryable

    @property
    def min_delay_ms(self) -> float:
        return _PROFILES[self].min_delay_ms

    @property
    def is_auth(self) -> bool:
        """True for kinds that require the user to sign in again."""
        return self in (FailureKind.UNAUTHORIZED, FailureKind.FORBIDDEN)

    @property
    def offers_retry_action(self) -> bool:
        """Whether a UI should show a retry button for this kind.

        Auth failures never offer one since retrying cannot help until the
        user re-authenticates.
        """
        return not self.is_auth


_PROFILES: dict[FailureKind, KindProfile] = {
    FailureKind.NETWORK: KindProfile(
        code="F100",
        default_message="Network connection error. Please check your internet connection.",
        retryable=True,
    ),
    FailureKind.TIMEOUT: KindProfile(
        code="F101",
        default_message="The request timed out. Please check your connection and try again.",
        retryable=True,
    ),
    FailureKind.UNAUTHORIZED: KindProfile(
        code="F200",
        default_message="Authentication required. Please sign in again.",
        retryable=False,
    ),
    FailureKind.FORBIDDEN: KindProfile(
        code="F201",
        default_message=(
            "Access denied. You don't have permission to view this data. "
            "Please sign in with a different account."
        ),
        retryable=False,
    ),
    FailureKind.NOT_FOUND: KindProfile(
        code="F300",
        default_message="The requested resource was not found.",
        retryable=False,
    ),
    FailureKind.RATE_LIMITED: KindProfile(
        code="F400",
        default_message="Too many requests. Please wait a moment before trying again.",
        retryable=True,
        min_delay_ms=RATE_LIMIT_MIN_DELAY_MS,
    ),
    FailureKind.SERVER_ERROR: KindProfile(
        code="F500",
        default_message="Server error. Please try again later.",
        retryable=True,
    ),
    FailureKind.VALIDATION: KindProfile(
        code="F600",
        default_message="The data received was invalid. Please refresh and try again.",
        retryable=False,
    ),
    FailureKind.UNKNOWN: KindProfile(
        code="F999",
        default_message="An unexpected error occurred.",
        retryable=False,
    ),
}
