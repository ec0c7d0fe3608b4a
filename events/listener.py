"""
Tessera - Lazy Service Listeners

Listeners that fetch their service from a container only when the
event fires, so that registering a listener does not build it.
"""

from __future__ import annotations

from typing import Any

from di.container import ContainerInterface
from events.event import AbstractEvent
from events.exceptions import EventListenerError


class LazyServiceEventListener:
    """
    Resolve a service from the container and call it with the event.

    Args:
        container: Container holding the service
        service_id: Key of the service
        method: Method to call when the service itself is not callable
    """

    def __init__(self, container: ContainerInterface, service_id: str, method: str = ""):
        if not service_id:
            raise ValueError(
                "The service_id parameter cannot be empty, use a service key registered in the container."
            )

        self.container = container
        self.service_id = service_id
        self.method = method

    def __call__(self, event: AbstractEvent) -> Any:
        if not self.container.has(self.service_id):
            raise EventListenerError(
                f"The '{self.service_id}' service has not been registered with the container."
            )

        service = self.container.get(self.service_id)

        if callable(service):
            return service(event)

        if not self.method:
            raise ValueError(
                f"The '{self.service_id}' service is not callable, a method name is required."
            )

        handler = getattr(service, self.method, None)
        if not callable(handler):
            raise EventListenerError(
                f"The '{self.service_id}' service does not have a method '{self.method}'."
            )

        return handler(event)

    def __repr__(self) -> str:
        return f"LazyServiceEventListener(service_id={self.service_id!r}, method={self.method!r})"
