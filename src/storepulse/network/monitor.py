"""Network status monitor.

Tracks reachability reported by a ConnectivitySource and answers "are we
online?" and "did we just come back online?" for every fetch in the process.

State transitions (duplicate signals are no-ops):
- online -> offline: is_online=False, was_offline=False
- offline -> online: is_online=True, was_offline=True

Consumers read immutable NetworkState snapshots and may subscribe to be
told about each real transition.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from storepulse.core.logging import get_logger
from storepulse.network.sources import ConnectivityEvent, ConnectivitySource

_logger = get_logger("network")

StatusCallback = Callable[["NetworkState", "NetworkState"], Any]
"""Called with (current, previous) on every transition. May be async."""


@dataclass(frozen=True)
class NetworkState:
    """Snapshot of process reachability.

    Attributes:
        is_online: Current best-known reachability.
        was_offline: True after an offline -> online transition, until the
            next offline event.
    """

    is_online: bool
    was_offline: bool = False


class NetworkStatusMonitor:
    """Shared reachability state with subscribers.

    Usage::

        source = ManualConnectivitySource()
        with NetworkStatusMonitor(source) as monitor:
            sub_id = monitor.subscribe(on_change)
            ...
            monitor.unsubscribe(sub_id)
    """

    def __init__(self, source: ConnectivitySource) -> None:
        self._source = source
        initial = bool(source.is_online())
        self._state = NetworkState(is_online=initial)
        self._subscribers: dict[str, StatusCallback] = {}
        self._reconnect_pending = False
        self._started = False
        self._online_event = asyncio.Event()
        self._set_online_event(initial)
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def source(self) -> ConnectivitySource:
        return self._source

    @property
    def state(self) -> NetworkState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state.is_online

    @property
    def was_offline(self) -> bool:
        return self._state.was_offline

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def start(self) -> None:
        """Read the initial state and register the source listeners."""
        if self._started:
            return
        initial = bool(self._source.is_online())
        self._state = NetworkState(is_online=initial)
        self._set_online_event(initial)
        self._source.add_listener(ConnectivityEvent.ONLINE, self._handle_online)
        self._source.add_listener(ConnectivityEvent.OFFLINE, self._handle_offline)
        self._started = True
        _logger.debug("monitor_started", is_online=initial)

    def dispose(self) -> None:
        """Remove both source listeners and drop all subscribers."""
        try:
            if self._started:
                self._source.remove_listener(ConnectivityEvent.ONLINE, self._handle_online)
                self._source.remove_listener(ConnectivityEvent.OFFLINE, self._handle_offline)
        finally:
            self._started = False
            self._subscribers.clear()
            for task in list(self._tasks):
                task.cancel()
            self._tasks.clear()
        _logger.debug("monitor_disposed")

    def subscribe(self, callback: StatusCallback) -> str:
        """Register a transition callback.

        Returns:
            Subscription ID for later unsubscribe.
        """
        sub_id = str(uuid.uuid4())
        self._subscribers[sub_id] = callback
        return sub_id

    def unsubscribe(self, sub_id: str) -> bool:
        """Remove a subscriber.

        Returns:
            True if the subscriber existed and was removed.
        """
        return self._subscribers.pop(sub_id, None) is not None

    def consume_reconnected(self) -> bool:
        """Return True once per offline -> online transition."""
        if self._reconnect_pending:
            self._reconnect_pending = False
            return True
        return False

    async def wait_until_online(self, timeout: float | None = None) -> bool:
        """Wait until the monitor reports online.

        Args:
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            True if online, False if the timeout elapsed first.
        """
        if self._state.is_online:
            return True
        try:
            await asyncio.wait_for(self._online_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return self._state.is_online

    def _handle_online(self) -> None:
        if self._state.is_online:
            return
        self._reconnect_pending = True
        self._apply(NetworkState(is_online=True, was_offline=True))

    def _handle_offline(self) -> None:
        if not self._state.is_online:
            return
        self._reconnect_pending = False
        self._apply(NetworkState(is_online=False, was_offline=False))

    def _apply(self, current: NetworkState) -> None:
        previous = self._state
        self._state = current
        self._set_online_event(current.is_online)
        _logger.info(
            "connectivity_changed",
            is_online=current.is_online,
            was_offline=current.was_offline,
        )
        self._notify(current, previous)

    def _set_online_event(self, online: bool) -> None:
        if online:
            self._online_event.set()
        else:
            self._online_event.clear()

    def _notify(self, current: NetworkState, previous: NetworkState) -> None:
        # Snapshot so callbacks may (un)subscribe while being notified
        for sub_id, callback in list(self._subscribers.items()):
            try:
                result = callback(current, previous)
                if asyncio.iscoroutine(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(self._on_task_done)
            except Exception:
                _logger.warning("subscriber_error", subscriber_id=sub_id, exc_info=True)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning(
                "subscriber_error",
                error=str(exc) or type(exc).__name__,
            )

    def __enter__(self) -> NetworkStatusMonitor:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    async def __aenter__(self) -> NetworkStatusMonitor:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"NetworkStatusMonitor(is_online={self._state.is_online}, "
            f"was_offline={self._state.was_offline}, subscribers={len(self._subscribers)})"
        )
