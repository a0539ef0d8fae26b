"""Data models for error classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .codes import FailureKind


@dataclass(frozen=True)
class ClassifiedError:
    """A raw failure translated into the FailureKind taxonomy.

    ``user_message`` is always non-empty and safe to render; an empty value
    falls back to the kind's default message. ``retryable`` defaults from
    the kind but may have been overridden by the caller.
    """

    kind: FailureKind
    message: str
    user_message: str = ""
    http_status: int | None = None
    retryable: bool = False
    cause: Any = field(default=None, compare=False, repr=False)
    suggested_wait_ms: float | None = None
    """Server-requested wait (from Retry-After), if the failure carried one."""

    def __post_init__(self) -> None:
        if not self.user_message or not self.user_message.strip():
            object.__setattr__(self, "user_message", self.kind.default_message)

    @property
    def code(self) -> str:
        """Get the stable code of the failure kind (e.g., 'F400')."""
        return self.kind.code

    @property
    def is_auth_error(self) -> bool:
        return self.kind.is_auth

    @property
    def offers_retry_action(self) -> bool:
        return self.kind.offers_retry_action

    @property
    def min_delay_ms(self) -> float:
        """Backoff floor for retrying this failure."""
        return max(self.kind.min_delay_ms, self.suggested_wait_ms or 0.0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict for logging and rendering."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "http_status": self.http_status,
            "retryable": self.retryable,
            "suggested_wait_ms": self.suggested_wait_ms,
        }
