# src/firecast/core/events.py
"""Event bus for initialization observability.

A synchronous, in-order fan-out of events from the orchestrator to any
number of subscribers: UI status panels, CLI formatters, tests. Status
snapshots and lifecycle events travel on the same bus, keyed by event type.

Unlike a bus for trusted formatters, subscribers here belong to the host
application. A subscriber that raises is logged and skipped; it never
prevents delivery to the remaining subscribers and never reaches the
emitter.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Lets both EventBus and NullEventBus satisfy the interface without
    inheritance.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> Subscription:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: object) -> None:
        """Emit an event to all subscribers."""
        ...


class Subscription:
    """Handle returned by subscribe(); removes the handler when cancelled.

    Usable as a context manager:

        with bus.subscribe(InitializationStatus, panel.render):
            await initializer.initialize_all_models()
    """

    def __init__(self, bus: EventBus | None, event_type: type, handler: Callable[[Any], None]) -> None:
        self._bus = bus
        self.event_type = event_type
        self.handler = handler

    @property
    def active(self) -> bool:
        return self._bus is not None

    def unsubscribe(self) -> None:
        """Remove the handler. Calling twice is a no-op."""
        if self._bus is None:
            return
        self._bus._remove(self)
        self._bus = None

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class EventBus:
    """Synchronous event bus with failure-isolated delivery.

    Events are dispatched to subscribers of their exact type, in
    subscription order. Handlers subscribed or removed during an emit take
    effect from the next emit.

    Example:
        bus = EventBus()
        sub = bus.subscribe(PhaseStarted, lambda e: print(f"[{e.phase}] starting"))
        bus.emit(PhaseStarted(phase=InitPhase.DATA))
        sub.unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Subscription]] = {}
        self._handler_failures = 0

    @property
    def handler_failures(self) -> int:
        """Number of handler invocations that raised."""
        return self._handler_failures

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> Subscription:
        """Subscribe a handler to an event type.

        Args:
            event_type: The event class to subscribe to
            handler: Callable that receives the event instance

        Returns:
            Subscription handle for removing the handler
        """
        subscription = Subscription(self, event_type, handler)
        self._subscribers.setdefault(event_type, []).append(subscription)
        return subscription

    def subscriber_count(self, event_type: type) -> int:
        return len(self._subscribers.get(event_type, []))

    def emit(self, event: object) -> None:
        """Emit an event to all subscribers of its type.

        Events with no subscribers are ignored.
        """
        for subscription in tuple(self._subscribers.get(type(event), ())):
            try:
                subscription.handler(event)
            except Exception as e:
                self._handler_failures += 1
                logger.warning(
                    "Event subscriber raised",
                    event_type=type(event).__name__,
                    handler=getattr(subscription.handler, "__qualname__", repr(subscription.handler)),
                    error=str(e),
                )

    def _remove(self, subscription: Subscription) -> None:
        handlers = self._subscribers.get(subscription.event_type, [])
        if subscription in handlers:
            handlers.remove(subscription)


class NullEventBus:
    """No-op event bus for library use without observers.

    Does NOT inherit from EventBus: subscribing to it is a visible no-op,
    the returned handle is already inactive.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> Subscription:
        return Subscription(None, event_type, handler)

    def emit(self, event: object) -> None:
        pass
