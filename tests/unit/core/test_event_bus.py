# tests/unit/core/test_event_bus.py
"""Tests for EventBus, Subscription handles, and NullEventBus."""

from dataclasses import dataclass

import pytest

from firecast.core.events import EventBus, NullEventBus


@dataclass(frozen=True)
class _Ping:
    value: int


@dataclass(frozen=True)
class _Pong:
    value: int


class TestEventBus:
    def test_delivers_to_subscribers_of_exact_type_in_order(self) -> None:
        bus = EventBus()
        received: list[tuple[str, int]] = []
        bus.subscribe(_Ping, lambda e: received.append(("first", e.value)))
        bus.subscribe(_Ping, lambda e: received.append(("second", e.value)))
        bus.subscribe(_Pong, lambda e: received.append(("pong", e.value)))

        bus.emit(_Ping(1))

        assert received == [("first", 1), ("second", 1)]

    def test_emit_without_subscribers_is_ignored(self) -> None:
        EventBus().emit(_Ping(1))

    def test_raising_subscriber_does_not_block_others(self) -> None:
        bus = EventBus()
        received: list[int] = []

        def broken(event: _Ping) -> None:
            raise RuntimeError("panel disposed")

        bus.subscribe(_Ping, broken)
        bus.subscribe(_Ping, lambda e: received.append(e.value))

        bus.emit(_Ping(7))

        assert received == [7]
        assert bus.handler_failures == 1

    def test_subscribe_during_emit_takes_effect_next_emit(self) -> None:
        bus = EventBus()
        late: list[int] = []

        def subscribe_late(event: _Ping) -> None:
            bus.subscribe(_Ping, lambda e: late.append(e.value))

        bus.subscribe(_Ping, subscribe_late)
        bus.emit(_Ping(1))
        assert late == []

        bus.emit(_Ping(2))
        assert late == [2]


class TestSubscription:
    def test_unsubscribe_stops_delivery(self) -> None:
        bus = EventBus()
        received: list[int] = []
        subscription = bus.subscribe(_Ping, lambda e: received.append(e.value))

        bus.emit(_Ping(1))
        subscription.unsubscribe()
        bus.emit(_Ping(2))

        assert received == [1]
        assert not subscription.active
        assert bus.subscriber_count(_Ping) == 0

    def test_unsubscribe_twice_is_noop(self) -> None:
        bus = EventBus()
        subscription = bus.subscribe(_Ping, lambda e: None)
        subscription.unsubscribe()
        subscription.unsubscribe()
        assert bus.subscriber_count(_Ping) == 0

    def test_unsubscribe_removes_only_its_own_handler(self) -> None:
        bus = EventBus()
        received: list[str] = []

        def handler(event: _Ping) -> None:
            received.append("hit")

        first = bus.subscribe(_Ping, handler)
        bus.subscribe(_Ping, handler)

        first.unsubscribe()
        bus.emit(_Ping(1))

        assert received == ["hit"]

    def test_context_manager_unsubscribes_on_exit(self) -> None:
        bus = EventBus()
        received: list[int] = []

        with bus.subscribe(_Ping, lambda e: received.append(e.value)) as subscription:
            bus.emit(_Ping(1))
            assert subscription.active

        bus.emit(_Ping(2))
        assert received == [1]

    def test_context_manager_unsubscribes_when_body_raises(self) -> None:
        bus = EventBus()
        with pytest.raises(ValueError), bus.subscribe(_Ping, lambda e: None):
            raise ValueError("boom")
        assert bus.subscriber_count(_Ping) == 0


class TestNullEventBus:
    def test_subscribe_returns_inactive_handle(self) -> None:
        bus = NullEventBus()
        received: list[int] = []

        subscription = bus.subscribe(_Ping, lambda e: received.append(e.value))
        bus.emit(_Ping(1))

        assert received == []
        assert not subscription.active
        subscription.unsubscribe()
