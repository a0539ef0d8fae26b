"""Retry, connectivity and classification configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from storepulse.core.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_ATTEMPTS,
    PROBE_INTERVAL_SECONDS,
    PROBE_TIMEOUT_SECONDS,
)
from storepulse.core.errors.codes import FailureKind


class RetryConfig(BaseModel):
    """Configuration for the retry controller.

    ``max_attempts`` counts retries after the first try, so an operation runs
    at most ``max_attempts + 1`` times.
    """

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS, ge=0, le=20, description="Retries after the first try"
    )
    base_delay_ms: int = Field(
        default=DEFAULT_BASE_DELAY_MS, gt=0, description="Delay before the first retry"
    )
    max_delay_ms: int | None = Field(
        default=None, gt=0, description="Optional cap on any single backoff delay"
    )
    idempotent: bool = Field(
        default=False,
        description="Treat unrecognized failures as retryable (only for safe-to-repeat calls)",
    )

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetryConfig:
        if self.max_delay_ms is not None and self.base_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"base_delay_ms ({self.base_delay_ms}) must not exceed "
                f"max_delay_ms ({self.max_delay_ms})"
            )
        return self


class NetworkConfig(BaseModel):
    """Configuration for reachability probing and reconnect behavior."""

    probe_url: str | None = Field(
        default=None,
        description="URL probed with HEAD requests; defaults to the API base URL",
    )
    probe_interval_seconds: float = Field(default=PROBE_INTERVAL_SECONDS, gt=0)
    probe_timeout_seconds: float = Field(default=PROBE_TIMEOUT_SECONDS, gt=0)
    auto_retry_on_reconnect: bool = Field(
        default=True,
        description="Reload a failed resource once when connectivity returns",
    )


class ClassifierConfig(BaseModel):
    """User-facing message overrides per failure kind.

    Example:
        classifier:
          messages:
            not_found: "No gamification data yet. This might be your first visit."
    """

    messages: dict[FailureKind, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_messages(self) -> ClassifierConfig:
        blank = [kind.value for kind, text in self.messages.items() if not text.strip()]
        if blank:
            raise ValueError(f"messages must not be blank: {', '.join(blank)}")
        return self
