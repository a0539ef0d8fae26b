"""Retry controller with bounded exponential backoff.

Runs a caller-supplied async operation until it succeeds, the failure is not
retryable, or the retry budget is spent. The controller is an explicit state
machine:

- IDLE: No sequence has run since construction or reset()
- ATTEMPTING: The operation is in flight
- SLEEPING: Waiting out the backoff delay before the next attempt
- SUCCEEDED: The last sequence returned a result
- EXHAUSTED: The last sequence failed terminally; only reset() leaves this state

State transitions:
- IDLE/SUCCEEDED -> ATTEMPTING: retry() called
- ATTEMPTING -> SUCCEEDED: operation returned
- ATTEMPTING -> SLEEPING: retryable failure with budget left
- SLEEPING -> ATTEMPTING: backoff elapsed
- ATTEMPTING -> EXHAUSTED: non-retryable failure, or budget spent
- any -> IDLE: reset()

Every transition first checks the disposed flag, so a controller disposed
while sleeping or awaiting the operation never attempts again and never
invokes on_success/on_error.

Example usage:
    from storepulse.execution.retry import RetryController

    controller = RetryController(max_attempts=3, base_delay_ms=1000)

    try:
        reviews = await controller.retry(lambda: client.get_json("/api/reviews"))
    except RetryExhaustedError as e:
        show_banner(e.error.user_message)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from storepulse.core.constants import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_ATTEMPTS
from storepulse.core.errors import (
    ClassifiedError,
    ErrorClassifier,
    RetryCancelledError,
    RetryExhaustedError,
    RetryInProgressError,
)
from storepulse.core.logging import get_logger

if TYPE_CHECKING:
    from storepulse.core.config import RetryConfig

_logger = get_logger("retry")

T = TypeVar("T")

SuccessCallback = Callable[[Any], Any]
ErrorCallback = Callable[[ClassifiedError], Any]
RetryCallback = Callable[[int, ClassifiedError, float], Any]
"""Called before each backoff sleep with (attempt, error, delay_ms)."""


class RetryPhase(str, Enum):
    """Phase of the retry state machine."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    SLEEPING = "sleeping"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryState:
    """Snapshot of a controller, suitable for rendering spinners and counters.

    Attributes:
        attempt: Retries performed in the current sequence (0..max_attempts).
        is_retrying: True only while the operation is in flight or sleeping.
        last_error: Most recent classified failure, cleared on success/reset.
        max_attempts: Retries allowed after the first try.
        base_delay_ms: Delay before the first retry.
        phase: Current state machine phase.
        disposed: Whether the controller was disposed.
    """

    attempt: int
    is_retrying: bool
    last_error: ClassifiedError | None
    max_attempts: int
    base_delay_ms: int
    phase: RetryPhase = RetryPhase.IDLE
    disposed: bool = False

    @property
    def can_retry(self) -> bool:
        """False once terminal (until reset) or after disposal."""
        return not self.disposed and self.phase is not RetryPhase.EXHAUSTED


async def _invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Call a sync or async callback."""
    if callback is None:
        return
    result = callback(*args)
    if asyncio.iscoroutine(result):
        await result


class RetryController:
    """Retries one logical operation with exponential backoff.

    One controller belongs to one logical operation (e.g., one feature
    loader). Controllers never share state, so many may run concurrently.
    Within a controller, attempts are strictly sequential.

    ``max_attempts`` counts retries after the first try: with the default of
    3 the operation runs at most 4 times. The delay before retry ``k`` is
    ``base_delay_ms * 2**(k-1)``, raised to the failure kind's floor (e.g.,
    rate limits) and optionally capped by ``max_delay_ms``.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        *,
        max_delay_ms: int | None = None,
        classifier: ErrorClassifier | None = None,
        idempotent: bool | None = None,
        should_retry: Callable[[ClassifiedError], bool] | None = None,
        on_retry: RetryCallback | None = None,
        name: str = "default",
    ) -> None:
        """Initialize the controller.

        Args:
            max_attempts: Retries allowed after the first try.
            base_delay_ms: Delay before the first retry (doubles thereafter).
            max_delay_ms: Optional cap on the exponential part of the delay.
            classifier: Classifier for failures; a default one is created
                when omitted.
            idempotent: Whether UNKNOWN failures may be retried. None defers
                to the classifier's setting.
            should_retry: Optional override deciding retryability from the
                classified error.
            on_retry: Called before each backoff sleep.
            name: Name used in logging.
        """
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be positive")
        if max_delay_ms is not None and max_delay_ms < base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")

        self._max_attempts = max_attempts
        self._base_delay_ms = base_delay_ms
        self._max_delay_ms = max_delay_ms
        self._classifier = classifier or ErrorClassifier(idempotent=bool(idempotent))
        self._idempotent = idempotent
        self._should_retry = should_retry
        self._on_retry = on_retry
        self._name = name

        self._attempt = 0
        self._phase = RetryPhase.IDLE
        self._last_error: ClassifiedError | None = None
        self._running = False
        self._disposed = False
        self._wake = asyncio.Event()

    @classmethod
    def from_config(
        cls,
        config: RetryConfig,
        *,
        classifier: ErrorClassifier | None = None,
        name: str = "default",
        **kwargs: Any,
    ) -> RetryController:
        """Create a controller from a RetryConfig."""
        return cls(
            max_attempts=config.max_attempts,
            base_delay_ms=config.base_delay_ms,
            max_delay_ms=config.max_delay_ms,
            classifier=classifier,
            idempotent=config.idempotent,
            name=name,
            **kwargs,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def base_delay_ms(self) -> int:
        return self._base_delay_ms

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def phase(self) -> RetryPhase:
        return self._phase

    @property
    def is_retrying(self) -> bool:
        return self._phase in (RetryPhase.ATTEMPTING, RetryPhase.SLEEPING)

    @property
    def last_error(self) -> ClassifiedError | None:
        return self._last_error

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def can_retry(self) -> bool:
        return self.state.can_retry

    @property
    def state(self) -> RetryState:
        """Immutable snapshot of the controller."""
        return RetryState(
            attempt=self._attempt,
            is_retrying=self.is_retrying,
            last_error=self._last_error,
            max_attempts=self._max_attempts,
            base_delay_ms=self._base_delay_ms,
            phase=self._phase,
            disposed=self._disposed,
        )

    def delay_for(self, attempt: int, error: ClassifiedError | None = None) -> float:
        """Backoff delay in milliseconds before retry number ``attempt``.

        Args:
            attempt: 1-based retry number.
            error: Failure that triggered the retry; its kind floor and any
                server-suggested wait raise the delay.

        Returns:
            Delay in milliseconds.
        """
        if attempt < 1:
            raise ValueError("attempt must be >= 1")
        delay = float(self._base_delay_ms * (2 ** (attempt - 1)))
        if self._max_delay_ms is not None:
            delay = min(delay, float(self._max_delay_ms))
        if error is not None:
            delay = max(delay, error.min_delay_ms)
        return delay

    def _transition(self, phase: RetryPhase) -> None:
        if self._disposed:
            raise RetryCancelledError(f"Retry controller '{self._name}' was disposed")
        self._phase = phase

    def _is_retryable(self, error: ClassifiedError) -> bool:
        if self._should_retry is not None:
            return self._should_retry(error)
        return error.retryable

    async def retry(
        self,
        operation: Callable[[], Awaitable[T]],
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the sequence is terminal.

        Args:
            operation: Zero-argument callable returning an awaitable. It is
                called afresh for every attempt. Timeouts are the operation's
                responsibility; a raised TimeoutError classifies as TIMEOUT.
            on_success: Called once with the result (sync or async).
            on_error: Called once with the terminal ClassifiedError.

        Returns:
            The operation's result.

        Raises:
            RetryExhaustedError: The failure was not retryable or every
                allowed attempt failed. Also raised immediately, without
                calling the operation, if the controller is already
                exhausted.
            RetryInProgressError: A sequence is already running.
            RetryCancelledError: The controller was disposed.
        """
        if self._disposed:
            raise RetryCancelledError(f"Retry controller '{self._name}' was disposed")
        if self._running:
            raise RetryInProgressError(
                f"Retry controller '{self._name}' is already running a sequence"
            )
        if self._phase is RetryPhase.EXHAUSTED and self._last_error is not None:
            raise RetryExhaustedError(self._last_error)

        self._running = True
        try:
            return await self._run(operation, on_success, on_error)
        finally:
            self._running = False
            if self.is_retrying:
                # Task cancelled mid-attempt; nothing is in flight any more
                self._phase = RetryPhase.IDLE

    async def _run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_success: SuccessCallback | None,
        on_error: ErrorCallback | None,
    ) -> T:
        failures = 0
        while True:
            self._transition(RetryPhase.ATTEMPTING)
            _logger.debug("attempt_started", controller=self._name, attempt=self._attempt)
            try:
                result = await operation()
            except Exception as exc:
                if self._disposed:
                    raise RetryCancelledError(
                        f"Retry controller '{self._name}' was disposed"
                    ) from exc

                error = self._classifier.classify(exc, unknown_retryable=self._idempotent)
                self._last_error = error
                failures += 1

                if not self._is_retryable(error) or failures > self._max_attempts:
                    self._transition(RetryPhase.EXHAUSTED)
                    _logger.warning(
                        "retry_exhausted",
                        controller=self._name,
                        calls=failures,
                        kind=error.kind.value,
                        code=error.code,
                        retryable=error.retryable,
                        message=error.message,
                    )
                    await _invoke(on_error, error)
                    raise RetryExhaustedError(error) from exc

                self._attempt = failures
                delay_ms = self.delay_for(failures, error)
                self._transition(RetryPhase.SLEEPING)
                _logger.info(
                    "retry_scheduled",
                    controller=self._name,
                    attempt=failures,
                    max_attempts=self._max_attempts,
                    delay_ms=delay_ms,
                    kind=error.kind.value,
                )
                await _invoke(self._on_retry, failures, error, delay_ms)
                await self._sleep(delay_ms / 1000.0)
                continue

            self._transition(RetryPhase.SUCCEEDED)
            if failures:
                _logger.info("retry_succeeded", controller=self._name, calls=failures + 1)
            self._attempt = 0
            self._last_error = None
            await _invoke(on_success, result)
            return result

    async def _sleep(self, seconds: float) -> None:
        """Sleep for the backoff delay; wakes early on dispose()."""
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=seconds)
        except TimeoutError:
            pass
        if self._disposed:
            raise RetryCancelledError(f"Retry controller '{self._name}' was disposed")

    def reset(self) -> None:
        """Return to IDLE for a logically new operation.

        Clears attempt, is_retrying and last_error unconditionally; calling
        it repeatedly has the same effect as calling it once.
        """
        self._attempt = 0
        self._last_error = None
        self._phase = RetryPhase.IDLE

    def dispose(self) -> None:
        """Stop the controller for good.

        Wakes a pending backoff sleep; no further attempts are made and no
        callbacks fire. Safe to call more than once.
        """
        if self._disposed:
            return
        self._disposed = True
        self._wake.set()
        if self.is_retrying:
            self._phase = RetryPhase.IDLE
        _logger.debug("controller_disposed", controller=self._name)

    async def __aenter__(self) -> RetryController:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"RetryController(name={self._name!r}, phase={self._phase.value}, "
            f"attempt={self._attempt}/{self._max_attempts})"
        )
