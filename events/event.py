"""
Tessera - Events

Event objects passed to listeners by the dispatcher. An event has a
name, a mapping of named arguments and a propagation flag that any
listener may set to stop the remaining listeners from running.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterator, Optional

from events.exceptions import ImmutableEventError


class AbstractEvent:
    """Read-only behaviour shared by all events."""

    def __init__(self, name: str, arguments: Optional[Dict[Hashable, Any]] = None):
        self._name = name
        self._arguments: Dict[Hashable, Any] = dict(arguments or {})
        self._stopped = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def arguments(self) -> Dict[Hashable, Any]:
        """A copy of the event arguments."""
        return dict(self._arguments)

    def get_argument(self, name: Hashable, default: Any = None) -> Any:
        return self._arguments.get(name, default)

    def has_argument(self, name: Hashable) -> bool:
        return name in self._arguments

    def is_stopped(self) -> bool:
        return self._stopped

    def stop_propagation(self) -> None:
        """Prevent listeners registered after the current one from running."""
        self._stopped = True

    def __len__(self) -> int:
        return len(self._arguments)

    def __contains__(self, name: Hashable) -> bool:
        return self.has_argument(name)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._arguments)

    def __getitem__(self, name: Hashable) -> Any:
        return self.get_argument(name)

    def __getstate__(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "arguments": self._arguments,
            "stopped": self._stopped,
        }

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._name = state["name"]
        self._arguments = state["arguments"]
        self._stopped = state["stopped"]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, arguments={self._arguments!r})"


class Event(AbstractEvent):
    """Default mutable event."""

    def add_argument(self, name: Hashable, value: Any) -> "Event":
        """Add an argument unless one with the same name already exists."""
        if name not in self._arguments:
            self._arguments[name] = value
        return self

    def set_argument(self, name: Hashable, value: Any) -> "Event":
        self._arguments[name] = value
        return self

    def remove_argument(self, name: Hashable) -> Any:
        """Remove an argument and return its value, or None if it was absent."""
        return self._arguments.pop(name, None)

    def clear_arguments(self) -> Dict[Hashable, Any]:
        """Remove all arguments and return the previous ones."""
        arguments, self._arguments = self._arguments, {}
        return arguments

    def __setitem__(self, name: Hashable, value: Any) -> None:
        if name is None:
            raise ValueError("The argument name cannot be None.")
        self.set_argument(name, value)

    def __delitem__(self, name: Hashable) -> None:
        self.remove_argument(name)


class ImmutableEvent(AbstractEvent):
    """An event whose arguments cannot change after construction."""

    _constructed = False

    def __init__(self, name: str, arguments: Optional[Dict[Hashable, Any]] = None):
        if self._constructed:
            raise ImmutableEventError(f"Cannot reconstruct the ImmutableEvent {self._name}.")

        super().__init__(name, arguments)
        self._constructed = True

    def __setitem__(self, name: Hashable, value: Any) -> None:
        raise ImmutableEventError(f"Cannot set the argument {name} of the immutable event {self._name}.")

    def __delitem__(self, name: Hashable) -> None:
        raise ImmutableEventError(f"Cannot remove the argument {name} of the immutable event {self._name}.")

    def __setstate__(self, state: Dict[str, Any]) -> None:
        super().__setstate__(state)
        self._constructed = True
