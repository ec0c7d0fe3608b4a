"""
Tessera - Event Module

Synchronous event dispatching:
- Mutable and immutable events with named arguments
- Priority-ordered listeners with propagation stopping
- Subscribers and lazily resolved container services as listeners

Usage:
    from events import Dispatcher, Event, Priority

    dispatcher = Dispatcher()
    dispatcher.add_listener("user.login", audit, Priority.HIGH)
    dispatcher.dispatch("user.login", Event("user.login", {"username": "alice"}))
"""

from events.dispatcher import (
    Dispatcher,
    DispatcherAware,
    SubscriberInterface,
    format_callable,
)
from events.event import AbstractEvent, Event, ImmutableEvent
from events.exceptions import (
    DispatcherNotFoundError,
    EventListenerError,
    ImmutableEventError,
)
from events.listener import LazyServiceEventListener
from events.priority import ListenersPriorityQueue, Priority

__all__ = [
    "AbstractEvent",
    "Dispatcher",
    "DispatcherAware",
    "DispatcherNotFoundError",
    "Event",
    "EventListenerError",
    "ImmutableEvent",
    "ImmutableEventError",
    "LazyServiceEventListener",
    "ListenersPriorityQueue",
    "Priority",
    "SubscriberInterface",
    "format_callable",
]
