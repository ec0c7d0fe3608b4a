"""
Tessera - Database Connection Events
"""

from __future__ import annotations

from typing import Any

from events.event import Event


class DatabaseEvents:
    """Names of the events dispatched by database executors."""

    POST_CONNECT = "onAfterConnect"
    POST_DISCONNECT = "onAfterDisconnect"


class ConnectionEvent(Event):
    """Event carrying the executor whose connection state changed."""

    def __init__(self, name: str, executor: Any):
        super().__init__(name, {"executor": executor})

    @property
    def executor(self) -> Any:
        return self.get_argument("executor")
