"""Event fan-out for control-channel notifications."""

from cdpctl.events.service import EventBus, EventHandler, EventWaiter, Subscription
from cdpctl.events.views import Event, EventFilter, as_filter, for_session, method_is

__all__ = [
    "Event",
    "EventBus",
    "EventFilter",
    "EventHandler",
    "EventWaiter",
    "Subscription",
    "as_filter",
    "for_session",
    "method_is",
]
