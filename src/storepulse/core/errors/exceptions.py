"""Exception hierarchy for storepulse.

All storepulse exceptions inherit from StorePulseError, enabling callers to
catch broad (StorePulseError) or narrow (e.g., RetryExhaustedError).
Failures surfaced by the fetch core carry a ClassifiedError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ClassifiedError


class StorePulseError(Exception):
    """Base exception for all storepulse errors."""


class ConfigError(StorePulseError):
    """Raised when a configuration file is missing, unparseable or invalid."""


class ApiError(StorePulseError):
    """Raised by the dashboard client for a completed, non-2xx response.

    Attributes:
        status_code: HTTP status of the response.
        retry_after: Raw Retry-After header value, if the server sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        retry_after: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(message)


class FetchError(StorePulseError):
    """A failure that reached the caller, carrying its classification."""

    def __init__(self, error: ClassifiedError) -> None:
        self.error = error
        super().__init__(error.message)

    @property
    def user_message(self) -> str:
        return self.error.user_message


class RetryExhaustedError(FetchError):
    """Raised when a retry sequence ends without success.

    Either every allowed attempt failed, or the failure was not retryable.
    """


class OfflineError(FetchError):
    """Raised when a fetch is skipped because the client is offline."""


class RetryCancelledError(StorePulseError):
    """Raised by a pending retry() after its controller was disposed."""


class RetryInProgressError(StorePulseError):
    """Raised when retry() is called while a sequence is still running."""
