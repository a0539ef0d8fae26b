"""Fetch orchestration shared by every dashboard feature.

A ResourceLoader ties one remote resource to the shared network monitor and
its own retry controller:

1. Offline: fail fast with a NETWORK error, without touching the network.
2. Online: run the fetch through the retry controller, starting a fresh
   sequence when the previous one finished.
3. Success stores the data; a terminal failure stores the classified error.
4. Optionally, after an offline -> online transition, a failed load is
   retried once automatically.
5. refresh() during a load supersedes it: the running sequence is cancelled,
   its outcome discarded, and a fresh sequence runs with the current
   parameters.

load() never raises classified failures; callers read ``state`` (or the
returned value) and render ``state.error.user_message``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, cast

from storepulse.core.errors import (
    ClassifiedError,
    ErrorClassifier,
    FailureKind,
    OfflineError,
    RetryCancelledError,
    RetryExhaustedError,
)
from storepulse.core.logging import FetchContext, get_logger, with_context
from storepulse.execution.retry import RetryCallback, RetryController, RetryPhase, RetryState
from storepulse.network.monitor import NetworkState, NetworkStatusMonitor

if TYPE_CHECKING:
    from storepulse.core.config import DashboardConfig
    from storepulse.http.client import DashboardClient

_logger = get_logger("loader")

T = TypeVar("T")

OFFLINE_MESSAGE = "Offline: request not sent"


@dataclass(frozen=True)
class LoadState(Generic[T]):
    """Snapshot of a loader for rendering.

    Attributes:
        loading: A load is in flight (including backoff sleeps).
        data: Last successfully loaded value.
        error: Terminal failure of the last load, None after a success.
        retry: Snapshot of the loader's retry controller.
    """

    loading: bool
    data: T | None
    error: ClassifiedError | None
    retry: RetryState

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def offers_retry_action(self) -> bool:
        """Whether a "try again" control should be shown."""
        return self.error is not None and self.error.offers_retry_action


class ResourceLoader(ABC, Generic[T]):
    """Loads one dashboard resource resiliently.

    Subclasses set ``resource`` and implement ``_fetch``. Each loader owns
    its RetryController; the NetworkStatusMonitor is shared.
    """

    resource: ClassVar[str] = "resource"
    default_messages: ClassVar[Mapping[FailureKind, str]] = {}

    def __init__(
        self,
        client: DashboardClient,
        monitor: NetworkStatusMonitor,
        controller: RetryController | None = None,
        *,
        auto_retry_on_reconnect: bool = True,
    ) -> None:
        self._client = client
        self._monitor = monitor
        self._controller = controller or RetryController(
            classifier=ErrorClassifier(messages=self.default_messages),
            name=self.resource,
        )
        self._auto_retry = auto_retry_on_reconnect
        self._data: T | None = None
        self._error: ClassifiedError | None = None
        self._loading = False
        self._closed = False
        self._skipped_offline = False
        self._cancelled = False
        self._stale = False
        self._sequence: asyncio.Future[T] | None = None
        self._settled = asyncio.Event()
        self._settled.set()
        self._reload_task: asyncio.Task[Any] | None = None
        self._sub_id: str | None = None
        if auto_retry_on_reconnect:
            self._sub_id = monitor.subscribe(self._on_connectivity_change)

    @classmethod
    def from_config(
        cls,
        config: DashboardConfig,
        client: DashboardClient,
        monitor: NetworkStatusMonitor,
        *,
        on_retry: RetryCallback | None = None,
        **kwargs: Any,
    ) -> ResourceLoader[T]:
        """Create a loader whose controller follows the retry configuration.

        Args:
            config: Root configuration.
            client: Dashboard client shared by the loaders.
            monitor: Shared network status monitor.
            on_retry: Called before each backoff sleep.
            **kwargs: Loader-specific options (e.g., review filters).
        """
        classifier = ErrorClassifier(
            idempotent=config.retry.idempotent,
            messages={**cls.default_messages, **config.classifier.messages},
        )
        controller = RetryController.from_config(
            config.retry, classifier=classifier, name=cls.resource, on_retry=on_retry
        )
        return cls(
            client,
            monitor,
            controller,
            auto_retry_on_reconnect=config.network.auto_retry_on_reconnect,
            **kwargs,
        )

    @abstractmethod
    async def _fetch(self) -> T:
        """Fetch the resource once. Raise on any failure."""

    def _merge(self, previous: T | None, fetched: T) -> T:
        """Combine a freshly fetched value with the stored one."""
        return fetched

    @property
    def controller(self) -> RetryController:
        return self._controller

    @property
    def auto_retry_on_reconnect(self) -> bool:
        return self._auto_retry

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def error(self) -> ClassifiedError | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def state(self) -> LoadState[T]:
        return LoadState(
            loading=self._loading,
            data=self._data,
            error=self._error,
            retry=self._controller.state,
        )

    def _offline_error(self) -> ClassifiedError:
        return ClassifiedError(
            kind=FailureKind.NETWORK,
            message=OFFLINE_MESSAGE,
            user_message=self._controller.classifier.user_message_for(FailureKind.NETWORK),
            retryable=True,
        )

    async def load(self) -> T | None:
        """Load the resource.

        Returns:
            The loaded value, or None if the load failed (see ``error``).
        """
        if self._closed:
            self._cancelled = True
            return None
        if self._loading:
            _logger.debug("load_already_running", resource=self.resource)
            return self._data

        self._cancelled = False
        self._skipped_offline = not self._monitor.is_online
        if self._skipped_offline:
            self._error = self._offline_error()
            _logger.info("load_skipped_offline", resource=self.resource)
            return None

        if self._controller.phase in (RetryPhase.EXHAUSTED, RetryPhase.SUCCEEDED):
            self._controller.reset()

        self._loading = True
        self._error = None
        self._settled.clear()
        try:
            with with_context(FetchContext(resource=self.resource)):
                while True:
                    self._stale = False
                    _logger.debug("load_started")
                    sequence = asyncio.ensure_future(self._controller.retry(self._fetch))
                    self._sequence = sequence
                    try:
                        await asyncio.wait({sequence})
                    finally:
                        self._sequence = None
                        if not sequence.done():
                            sequence.cancel()
                    if self._stale and not self._closed:
                        _logger.debug("load_superseded")
                        self._controller.reset()
                        continue
                    return self._settle(sequence)
        finally:
            self._loading = False
            self._settled.set()

    def _settle(self, sequence: asyncio.Future[T]) -> T | None:
        """Store the outcome of a finished retry sequence."""
        if sequence.cancelled():
            self._cancelled = True
            _logger.debug("load_cancelled")
            return None
        try:
            fetched = sequence.result()
        except RetryExhaustedError as e:
            self._error = e.error
            _logger.warning(
                "load_failed",
                kind=e.error.kind.value,
                code=e.error.code,
                user_message=e.error.user_message,
            )
            return None
        except RetryCancelledError:
            self._cancelled = True
            _logger.debug("load_cancelled")
            return None
        self._data = self._merge(self._data, fetched)
        _logger.debug("load_succeeded")
        return self._data

    async def load_or_raise(self) -> T:
        """Load the resource, raising the classified failure instead.

        Joins a load that is already in flight rather than starting another.

        Raises:
            OfflineError: The monitor reported offline; nothing was sent.
            RetryExhaustedError: The load failed terminally.
            RetryCancelledError: The loader was closed.
        """
        if self._loading:
            await self._settled.wait()
        else:
            await self.load()
        if self._closed or self._cancelled:
            raise RetryCancelledError(f"Loader '{self.resource}' is closed")
        if self._error is not None:
            if self._skipped_offline:
                raise OfflineError(self._error)
            raise RetryExhaustedError(self._error)
        return cast(T, self._data)

    async def refresh(self) -> T | None:
        """Start a logically new load, discarding any retry history.

        A load already in flight is superseded: its sequence is cancelled and
        a fresh one runs with the loader's current parameters. Returns the
        outcome of that fresh load.
        """
        if self._loading:
            self._stale = True
            if self._sequence is not None:
                self._sequence.cancel()
            await self._settled.wait()
            return self._data if self._error is None else None
        self._controller.reset()
        return await self.load()

    def _on_connectivity_change(self, current: NetworkState, previous: NetworkState) -> None:
        if not (current.is_online and not previous.is_online):
            return
        if self._closed or self._error is None or self._loading:
            return
        if self._reload_task is not None and not self._reload_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.warning("reconnect_reload_skipped", resource=self.resource, reason="no loop")
            return
        _logger.info("reconnect_reload_scheduled", resource=self.resource)
        self._reload_task = loop.create_task(
            self.load(), name=f"storepulse-reload-{self.resource}"
        )

    async def wait_for_reload(self) -> T | None:
        """Await a reload scheduled by a reconnect, if any."""
        task = self._reload_task
        if task is None:
            return self._data
        return await task

    async def close(self) -> None:
        """Dispose the controller, unsubscribe and cancel in-flight work."""
        if self._closed:
            return
        self._closed = True
        self._controller.dispose()
        if self._sequence is not None:
            self._sequence.cancel()
        if self._sub_id is not None:
            self._monitor.unsubscribe(self._sub_id)
            self._sub_id = None
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
            try:
                await self._reload_task
            except asyncio.CancelledError:
                pass
        self._reload_task = None

    async def __aenter__(self) -> ResourceLoader[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(loading={self._loading}, "
            f"has_data={self._data is not None}, error={self._error!r})"
        )
