"""Connectivity sources: where online/offline signals come from.

A ConnectivitySource reports the current reachability and notifies
listeners on ONLINE/OFFLINE events. The monitor depends only on the
protocol, so embedders can bind it to whatever their platform offers.

Bindings:
- ManualConnectivitySource: in-process emitter driven by the embedder.
- ProbeConnectivitySource: polls a health URL with HEAD requests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable

import httpx

from storepulse.core.constants import PROBE_INTERVAL_SECONDS, PROBE_TIMEOUT_SECONDS
from storepulse.core.logging import get_logger

_logger = get_logger("network.source")

ConnectivityListener = Callable[[], None]


class ConnectivityEvent(str, Enum):
    """Reachability change signaled by a source."""

    ONLINE = "online"
    OFFLINE = "offline"


@runtime_checkable
class ConnectivitySource(Protocol):
    """Platform binding that reports reachability changes."""

    def is_online(self) -> bool: ...

    def add_listener(self, event: ConnectivityEvent, listener: ConnectivityListener) -> None: ...

    def remove_listener(
        self, event: ConnectivityEvent, listener: ConnectivityListener
    ) -> None: ...


class _ListenerRegistry:
    """Listener bookkeeping shared by the bindings."""

    def __init__(self) -> None:
        self._listeners: dict[ConnectivityEvent, list[ConnectivityListener]] = {
            ConnectivityEvent.ONLINE: [],
            ConnectivityEvent.OFFLINE: [],
        }

    def add_listener(self, event: ConnectivityEvent, listener: ConnectivityListener) -> None:
        self._listeners[ConnectivityEvent(event)].append(listener)

    def remove_listener(self, event: ConnectivityEvent, listener: ConnectivityListener) -> None:
        listeners = self._listeners[ConnectivityEvent(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: ConnectivityEvent | None = None) -> int:
        if event is not None:
            return len(self._listeners[ConnectivityEvent(event)])
        return sum(len(v) for v in self._listeners.values())

    def _emit(self, event: ConnectivityEvent) -> None:
        # Snapshot so listeners may remove themselves while being notified
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception:
                _logger.warning("listener_error", connectivity_event=event.value, exc_info=True)


class ManualConnectivitySource(_ListenerRegistry):
    """Connectivity source driven explicitly by the embedder.

    Every call to go_online()/go_offline() emits an event, even when the
    state does not change; deduplication is the monitor's job.

    Example:
        source = ManualConnectivitySource(online=True)
        monitor = NetworkStatusMonitor(source)
        monitor.start()
        source.go_offline()
    """

    def __init__(self, online: bool = True) -> None:
        super().__init__()
        self._online = online

    def is_online(self) -> bool:
        return self._online

    def go_online(self) -> None:
        self._online = True
        self._emit(ConnectivityEvent.ONLINE)

    def go_offline(self) -> None:
        self._online = False
        self._emit(ConnectivityEvent.OFFLINE)


class ProbeConnectivitySource(_ListenerRegistry):
    """Connectivity source that polls a URL with HEAD requests.

    Any response, whatever its status, means the server is reachable. A
    transport error or timeout means it is not. Events are emitted only when
    the probe result changes.
    """

    def __init__(
        self,
        url: str,
        *,
        interval_seconds: float = PROBE_INTERVAL_SECONDS,
        timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
        initial_online: bool = True,
    ) -> None:
        super().__init__()
        self._url = url
        self._interval = interval_seconds
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._online = initial_online
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_online(self) -> bool:
        return self._online

    async def probe(self) -> bool:
        """Probe the URL once, updating state and emitting on change.

        Returns:
            True if the server answered.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            await self._client.head(self._url, timeout=self._timeout)
            reachable = True
        except httpx.HTTPError as e:
            _logger.debug("probe_failed", url=self._url, error=str(e) or type(e).__name__)
            reachable = False

        if reachable != self._online:
            self._online = reachable
            _logger.info("reachability_changed", url=self._url, online=reachable)
            self._emit(ConnectivityEvent.ONLINE if reachable else ConnectivityEvent.OFFLINE)
        return reachable

    async def start(self) -> None:
        """Probe once, then keep probing in a background task."""
        if self.is_running:
            return
        await self.probe()
        self._task = asyncio.create_task(self._poll_loop(), name="storepulse-probe")

    async def stop(self) -> None:
        """Stop polling and close the owned HTTP client."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.probe()

    async def __aenter__(self) -> ProbeConnectivitySource:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
