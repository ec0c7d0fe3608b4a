"""
Tessera - Listener Priorities

Priority constants and the ordered listener collection used by the
dispatcher. Higher priorities run first, listeners sharing a priority
run in the order they were added.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Dict, Iterator, List, Optional

Listener = Callable[..., Any]


class Priority(IntEnum):
    """Common listener priorities."""

    MIN = -3
    LOW = -2
    BELOW_NORMAL = -1
    NORMAL = 0
    ABOVE_NORMAL = 1
    HIGH = 2
    MAX = 3


class ListenersPriorityQueue:
    """Listeners of a single event, grouped by priority."""

    def __init__(self) -> None:
        self._listeners: Dict[int, List[Listener]] = {}

    def add(self, listener: Listener, priority: int) -> "ListenersPriorityQueue":
        self._listeners.setdefault(int(priority), []).append(listener)
        return self

    def remove(self, listener: Listener) -> "ListenersPriorityQueue":
        """Remove the first registration of ``listener`` from every priority."""
        for priority in list(self._listeners):
            bucket = self._listeners[priority]
            for index, registered in enumerate(bucket):
                if registered == listener:
                    del bucket[index]
                    break
            if not bucket:
                del self._listeners[priority]
        return self

    def has(self, listener: Listener) -> bool:
        return any(
            registered == listener
            for bucket in self._listeners.values()
            for registered in bucket
        )

    def get_priority(self, listener: Listener, default: Optional[int] = None) -> Optional[int]:
        for priority, bucket in self._listeners.items():
            if any(registered == listener for registered in bucket):
                return priority
        return default

    def get_all(self) -> List[Listener]:
        """All listeners, highest priority first."""
        ordered: List[Listener] = []
        for priority in sorted(self._listeners, reverse=True):
            ordered.extend(self._listeners[priority])
        return ordered

    def __iter__(self) -> Iterator[Listener]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._listeners.values())
