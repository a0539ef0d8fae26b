"""Tests for storepulse.network.monitor module."""

import asyncio

import pytest

from storepulse.network import (
    ConnectivityEvent,
    ManualConnectivitySource,
    NetworkState,
    NetworkStatusMonitor,
)


class TestLifecycle:
    def test_initial_state_from_source(self):
        source = ManualConnectivitySource(online=False)
        with NetworkStatusMonitor(source) as monitor:
            assert monitor.state == NetworkState(is_online=False, was_offline=False)

    def test_initial_state_read_on_construction(self):
        monitor = NetworkStatusMonitor(ManualConnectivitySource(online=False))
        assert not monitor.is_started
        assert not monitor.is_online
        assert monitor.state == NetworkState(is_online=False, was_offline=False)

    def test_start_rereads_source(self):
        source = ManualConnectivitySource(online=False)
        monitor = NetworkStatusMonitor(source)
        source.go_online()
        assert not monitor.is_online
        monitor.start()
        assert monitor.is_online
        monitor.dispose()

    def test_start_registers_both_listeners(self, source):
        monitor = NetworkStatusMonitor(source)
        assert source.listener_count() == 0
        monitor.start()
        assert source.listener_count(ConnectivityEvent.ONLINE) == 1
        assert source.listener_count(ConnectivityEvent.OFFLINE) == 1
        monitor.dispose()
        assert source.listener_count() == 0

    def test_start_twice_registers_once(self, source):
        monitor = NetworkStatusMonitor(source)
        monitor.start()
        monitor.start()
        assert source.listener_count() == 2
        monitor.dispose()

    def test_dispose_before_start_is_safe(self, source):
        monitor = NetworkStatusMonitor(source)
        monitor.dispose()
        assert not monitor.is_started

    def test_context_manager_removes_listeners(self, source):
        with NetworkStatusMonitor(source):
            assert source.listener_count() == 2
        assert source.listener_count() == 0

    def test_events_after_dispose_are_ignored(self, source):
        monitor = NetworkStatusMonitor(source)
        monitor.start()
        monitor.dispose()
        source.go_offline()
        assert monitor.is_online

    @pytest.mark.asyncio
    async def test_async_context_manager(self, source):
        async with NetworkStatusMonitor(source) as monitor:
            assert monitor.is_started
        assert source.listener_count() == 0


class TestTransitions:
    def test_offline_then_online(self, source, monitor):
        source.go_offline()
        assert monitor.state == NetworkState(is_online=False, was_offline=False)

        source.go_online()
        assert monitor.state == NetworkState(is_online=True, was_offline=True)

    def test_was_offline_resets_on_next_offline(self, source, monitor):
        source.go_offline()
        source.go_online()
        assert monitor.was_offline

        source.go_offline()
        assert not monitor.was_offline
        assert not monitor.is_online

    def test_duplicate_signals_are_noops(self, source, monitor):
        changes: list[NetworkState] = []
        monitor.subscribe(lambda current, previous: changes.append(current))

        source.go_online()
        source.go_offline()
        source.go_offline()
        source.go_online()
        source.go_online()

        assert changes == [
            NetworkState(is_online=False, was_offline=False),
            NetworkState(is_online=True, was_offline=True),
        ]

    def test_reconnected_observed_exactly_once(self, source, monitor):
        source.go_offline()
        assert not monitor.consume_reconnected()

        source.go_online()
        assert monitor.consume_reconnected()
        assert not monitor.consume_reconnected()

        source.go_offline()
        assert not monitor.was_offline
        assert not monitor.consume_reconnected()

    def test_offline_cancels_unconsumed_reconnect(self, source, monitor):
        source.go_offline()
        source.go_online()
        source.go_offline()
        assert not monitor.consume_reconnected()

    def test_snapshots_are_immutable(self, monitor):
        with pytest.raises(AttributeError):
            monitor.state.is_online = False  # type: ignore[misc]


class TestSubscribers:
    def test_callback_receives_current_and_previous(self, source, monitor):
        seen: list[tuple[NetworkState, NetworkState]] = []
        monitor.subscribe(lambda current, previous: seen.append((current, previous)))

        source.go_offline()

        assert seen == [
            (NetworkState(is_online=False), NetworkState(is_online=True)),
        ]

    def test_unsubscribe(self, source, monitor):
        seen: list[NetworkState] = []
        sub_id = monitor.subscribe(lambda current, previous: seen.append(current))

        assert monitor.unsubscribe(sub_id)
        assert not monitor.unsubscribe(sub_id)
        source.go_offline()
        assert seen == []

    def test_many_subscribers(self, source, monitor):
        counts = [0] * 5

        def make_callback(i):
            def callback(current, previous):
                counts[i] += 1

            return callback

        for i in range(5):
            monitor.subscribe(make_callback(i))
        source.go_offline()
        assert counts == [1] * 5
        assert monitor.subscriber_count == 5

    def test_subscriber_error_is_isolated(self, source, monitor):
        seen: list[NetworkState] = []

        def broken(current, previous):
            raise RuntimeError("subscriber bug")

        monitor.subscribe(broken)
        monitor.subscribe(lambda current, previous: seen.append(current))

        source.go_offline()

        assert len(seen) == 1
        assert not monitor.is_online

    def test_subscriber_may_unsubscribe_itself(self, source, monitor):
        calls: list[str] = []
        sub_ids: dict[str, str] = {}

        def once(current, previous):
            calls.append("once")
            monitor.unsubscribe(sub_ids["once"])

        sub_ids["once"] = monitor.subscribe(once)
        source.go_offline()
        source.go_online()
        assert calls == ["once"]

    @pytest.mark.asyncio
    async def test_async_subscriber_is_scheduled(self, source, monitor):
        done = asyncio.Event()

        async def on_change(current, previous):
            done.set()

        monitor.subscribe(on_change)
        source.go_offline()
        await asyncio.wait_for(done.wait(), timeout=1.0)


class TestWaitUntilOnline:
    @pytest.mark.asyncio
    async def test_returns_immediately_when_online(self, monitor):
        assert await monitor.wait_until_online(timeout=0.01)

    @pytest.mark.asyncio
    async def test_times_out_while_offline(self, source, monitor):
        source.go_offline()
        assert not await monitor.wait_until_online(timeout=0.01)

    @pytest.mark.asyncio
    async def test_wakes_on_reconnect(self, source, monitor):
        source.go_offline()
        waiter = asyncio.create_task(monitor.wait_until_online(timeout=1.0))
        await asyncio.sleep(0)
        source.go_online()
        assert await waiter
