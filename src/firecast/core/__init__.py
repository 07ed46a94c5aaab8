"""Core infrastructure: configuration, logging, and the event bus."""

from firecast.core.config import FirecastSettings, load_settings
from firecast.core.events import EventBus, EventBusProtocol, NullEventBus, Subscription
from firecast.core.logging import configure_logging

__all__ = [
    "EventBus",
    "EventBusProtocol",
    "FirecastSettings",
    "NullEventBus",
    "Subscription",
    "configure_logging",
    "load_settings",
]
