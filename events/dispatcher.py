"""
Tessera - Event Dispatcher

Synchronous, priority-ordered event dispatching.

Features:
- Per-event listener queues ordered by priority, FIFO within a priority
- Subscribers declaring their own listeners
- Propagation stopping
- OpenTelemetry span per dispatch

Usage:
    dispatcher = Dispatcher()
    dispatcher.add_listener("onAfterConnect", on_connect, Priority.HIGH)
    dispatcher.dispatch("onAfterConnect", ConnectionEvent(...))
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from opentelemetry import trace

from events.event import AbstractEvent, Event
from events.exceptions import DispatcherNotFoundError
from events.priority import Listener, ListenersPriorityQueue, Priority

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

SubscribedEvents = Dict[str, Union[str, Tuple[str, int], Tuple[str]]]


class SubscriberInterface(ABC):
    """An object that registers its own methods as listeners."""

    @classmethod
    @abstractmethod
    def get_subscribed_events(cls) -> SubscribedEvents:
        """
        Map event names to listener method names.

        Values are either a method name or a ``(method, priority)`` tuple.
        """


class Dispatcher:
    """Default event dispatcher."""

    def __init__(self) -> None:
        self._listeners: Dict[str, ListenersPriorityQueue] = {}

    def add_listener(
        self,
        event_name: str,
        listener: Listener,
        priority: int = Priority.NORMAL,
    ) -> bool:
        queue = self._listeners.setdefault(event_name, ListenersPriorityQueue())
        queue.add(listener, priority)
        logger.debug("Listener added", event_name=event_name, priority=int(priority))
        return True

    def get_listener_priority(self, event_name: Union[str, AbstractEvent], listener: Listener) -> Optional[int]:
        queue = self._listeners.get(_event_name(event_name))
        if queue is None:
            return None
        return queue.get_priority(listener)

    def get_listeners(
        self,
        event: Optional[Union[str, AbstractEvent]] = None,
    ) -> Union[List[Listener], Dict[str, List[Listener]]]:
        """
        Get the listeners of one event, or of all events.

        Returns:
            A priority-ordered list when ``event`` is given, otherwise a
            dict of event name to listener list
        """
        if event is not None:
            queue = self._listeners.get(_event_name(event))
            return queue.get_all() if queue is not None else []

        return {
            name: queue.get_all()
            for name, queue in self._listeners.items()
            if len(queue)
        }

    def has_listener(
        self,
        listener: Listener,
        event: Optional[Union[str, AbstractEvent]] = None,
    ) -> bool:
        if event is not None:
            queue = self._listeners.get(_event_name(event))
            return queue is not None and queue.has(listener)

        return any(queue.has(listener) for queue in self._listeners.values())

    def remove_listener(self, event_name: Union[str, AbstractEvent], listener: Listener) -> None:
        queue = self._listeners.get(_event_name(event_name))
        if queue is not None:
            queue.remove(listener)

    def clear_listeners(self, event: Optional[Union[str, AbstractEvent]] = None) -> "Dispatcher":
        if event is None:
            self._listeners = {}
        else:
            self._listeners.pop(_event_name(event), None)
        return self

    def count_listeners(self, event: Union[str, AbstractEvent]) -> int:
        queue = self._listeners.get(_event_name(event))
        return len(queue) if queue is not None else 0

    def add_subscriber(self, subscriber: SubscriberInterface) -> None:
        for event_name, method, priority in _subscriptions(subscriber):
            self.add_listener(event_name, getattr(subscriber, method), priority)

    def remove_subscriber(self, subscriber: SubscriberInterface) -> None:
        for event_name, method, _ in _subscriptions(subscriber):
            self.remove_listener(event_name, getattr(subscriber, method))

    def dispatch(self, name: str, event: Optional[AbstractEvent] = None) -> AbstractEvent:
        """
        Call the listeners of ``name`` with ``event``.

        A new ``Event`` is created when none is given. Dispatching stops
        as soon as a listener stops the event's propagation.

        Returns:
            The dispatched event
        """
        if event is None:
            event = Event(name)

        queue = self._listeners.get(name)
        if queue is None:
            return event

        with tracer.start_as_current_span("events.dispatch") as span:
            span.set_attribute("event.name", name)
            called = 0
            for listener in queue.get_all():
                if event.is_stopped():
                    logger.debug("Event propagation stopped", event_name=name, called=called)
                    break
                listener(event)
                called += 1
            span.set_attribute("event.listeners_called", called)

        return event


class DispatcherAware:
    """Mixin for objects holding a reference to a dispatcher."""

    _dispatcher: Optional[Dispatcher] = None

    def get_dispatcher(self) -> Dispatcher:
        if self._dispatcher is None:
            raise DispatcherNotFoundError("Dispatcher not set in " + type(self).__name__)
        return self._dispatcher

    def set_dispatcher(self, dispatcher: Dispatcher) -> "DispatcherAware":
        self._dispatcher = dispatcher
        return self


def _event_name(event: Union[str, AbstractEvent]) -> str:
    return event.name if isinstance(event, AbstractEvent) else event


def _subscriptions(subscriber: SubscriberInterface) -> List[Tuple[str, str, int]]:
    entries = []
    for event_name, params in subscriber.get_subscribed_events().items():
        if isinstance(params, str):
            entries.append((event_name, params, Priority.NORMAL))
        else:
            method = params[0]
            priority = params[1] if len(params) > 1 else Priority.NORMAL
            entries.append((event_name, method, priority))
    return entries


def format_callable(listener: Any) -> str:
    """
    Describe a listener for display.

    Raises:
        ValueError: If the object is not callable
    """
    if getattr(listener, "__self__", None) is not None and hasattr(listener, "__func__"):
        owner = listener.__self__
        owner_name = owner.__qualname__ if isinstance(owner, type) else type(owner).__qualname__
        return f"{owner_name}.{listener.__func__.__name__}()"

    qualname = getattr(listener, "__qualname__", None)
    if qualname is not None and callable(listener):
        if getattr(listener, "__name__", "") == "<lambda>":
            return "lambda()"
        module = getattr(listener, "__module__", None)
        return f"{module}.{qualname}()" if module else f"{qualname}()"

    if callable(listener):
        return f"{type(listener).__qualname__}.__call__()"

    raise ValueError("The listener is not callable.")
