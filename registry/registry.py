"""
Tessera - Registry

Hierarchical key/value store addressed by separator-delimited paths
(``database.host``), loadable from and dumpable to several formats.

Usage:
    registry = Registry()
    registry.load_string('{"database": {"host": "localhost"}}')
    registry.get("database.host")        # "localhost"
    registry.set("database.port", 5432)
    registry.to_string("yaml")
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from registry.formats import get_format

_MISSING = object()


class Registry:
    """
    Nested configuration data addressed by paths.

    Args:
        data: Another registry (merged), a mapping or list (bound), or a
            non-empty JSON string (loaded)
        separator: Path separator
    """

    def __init__(self, data: Any = None, separator: str = "."):
        self.separator = separator
        self._data: Dict[str, Any] = {}
        self._initialized = False

        if isinstance(data, Registry):
            self.merge(data)
        elif isinstance(data, (Mapping, list, tuple)):
            self._bind(self._data, data)
        elif isinstance(data, str) and data:
            self.load_string(data)

    # ------------------------------------------------------------------
    # Path access
    # ------------------------------------------------------------------

    def _split(self, path: str) -> List[str]:
        if self.separator == "":
            return [path] if path else []
        return [node for node in str(path).strip().split(self.separator) if node]

    @staticmethod
    def _child(node: Any, segment: str) -> Tuple[bool, Any]:
        if isinstance(node, dict):
            if segment in node:
                return True, node[segment]
        elif isinstance(node, list) and segment.isdigit():
            index = int(segment)
            if index < len(node):
                return True, node[index]
        return False, None

    def _walk(self, nodes: List[str]) -> Any:
        node: Any = self._data
        for segment in nodes:
            found, node = self._child(node, segment)
            if not found:
                return _MISSING
        return node

    def _parent_for_write(self, nodes: List[str]) -> Optional[Any]:
        """Walk to the container of the last segment, creating dicts on the way."""
        node: Any = self._data
        for segment in nodes[:-1]:
            if isinstance(node, dict):
                child = node.get(segment)
                if not isinstance(child, (dict, list)):
                    child = node[segment] = {}
                node = child
            elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
                index = int(segment)
                if not isinstance(node[index], (dict, list)):
                    node[index] = {}
                node = node[index]
            else:
                return None
        return node

    def exists(self, path: str) -> bool:
        if not path:
            return False
        nodes = self._split(path)
        return bool(nodes) and self._walk(nodes) is not _MISSING

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get the value at ``path``.

        Missing paths and values that are None or an empty string
        return ``default``.
        """
        if not path:
            return default

        value = self._walk(self._split(path))
        if value is _MISSING or value is None or (isinstance(value, str) and value == ""):
            return default
        return value

    def set(self, path: str, value: Any) -> Any:
        """
        Set the value at ``path``, creating intermediate levels.

        Returns:
            The previous value, or None
        """
        nodes = self._split(path)
        if not nodes:
            return None

        parent = self._parent_for_write(nodes)
        last = nodes[-1]

        if isinstance(parent, dict):
            previous = parent.get(last)
            parent[last] = value
            return previous

        if isinstance(parent, list) and last.isdigit():
            index = int(last)
            if index < len(parent):
                previous = parent[index]
                parent[index] = value
                return previous
            if index == len(parent):
                parent.append(value)
        return None

    def append(self, path: str, value: Any) -> Any:
        """
        Append ``value`` to the list at ``path``.

        A dict at ``path`` is replaced by the list of its values and a
        scalar by a one-element list before appending.
        """
        nodes = self._split(path)
        if not nodes:
            return None

        parent = self._parent_for_write(nodes)
        if not isinstance(parent, dict):
            return None

        last = nodes[-1]
        current = parent.get(last)

        if isinstance(current, list):
            current.append(value)
            return value

        if current is None:
            current = []
        elif isinstance(current, dict):
            current = list(current.values())
        else:
            current = [current]

        current.append(value)
        parent[last] = current
        return value

    def remove(self, path: str) -> Any:
        """Remove the value at ``path`` and return it."""
        nodes = self._split(path)
        if not nodes:
            return None

        parent = self._walk(nodes[:-1])
        last = nodes[-1]

        if isinstance(parent, dict):
            return parent.pop(last, None)
        if isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
            return parent.pop(int(last))
        return None

    def setdefault(self, path: str, default: Any = "") -> Any:
        """Get the value at ``path``, storing ``default`` first if it is unset."""
        value = self.get(path, default)
        self.set(path, value)
        return value

    # ------------------------------------------------------------------
    # Loading and merging
    # ------------------------------------------------------------------

    def _bind(
        self,
        parent: Dict[str, Any],
        data: Union[Mapping[Any, Any], List[Any], Tuple[Any, ...]],
        recursive: bool = True,
        allow_null: bool = True,
    ) -> None:
        self._initialized = True

        items = data.items() if isinstance(data, Mapping) else enumerate(data)
        for key, value in items:
            key = str(key)
            if not allow_null and (value is None or (isinstance(value, str) and value == "")):
                continue

            if recursive and isinstance(value, Mapping):
                if not isinstance(parent.get(key), dict):
                    parent[key] = {}
                self._bind(parent[key], value, recursive, allow_null)
                continue

            parent[key] = copy.deepcopy(value)

    def load_dict(
        self,
        data: Mapping[str, Any],
        flattened: bool = False,
        separator: Optional[str] = None,
    ) -> "Registry":
        """
        Merge a mapping into the registry.

        With ``flattened`` the keys are paths, split on ``separator``
        (which then becomes the registry's separator).
        """
        if not flattened:
            self._bind(self._data, data)
            return self

        if separator:
            self.separator = separator

        for path, value in data.items():
            self.set(path, value)
        return self

    def load_string(self, data: str, format: str = "json", **options: Any) -> "Registry":
        """
        Parse ``data`` in the given format.

        The first load replaces the registry contents, later loads merge
        into them.
        """
        parsed = get_format(format).load(data, **options)

        if not self._initialized:
            self._data = {}
        self._bind(self._data, parsed)
        return self

    def load_file(self, path: Union[str, Path], format: str = "json", **options: Any) -> "Registry":
        text = Path(path).read_text(encoding="utf-8")
        return self.load_string(text, format, **options)

    def merge(self, source: "Registry", recursive: bool = False) -> "Registry":
        """
        Merge another registry into this one.

        None and empty-string values of ``source`` are skipped. Without
        ``recursive`` nested dicts of ``source`` replace ours wholesale.
        """
        self._bind(self._data, source.to_dict(), recursive, allow_null=False)
        return self

    def extract(self, path: str) -> "Registry":
        """A new registry holding a copy of the data under ``path``."""
        data = self.get(path)
        if not isinstance(data, (Mapping, list)):
            data = None
        return Registry(data, self.separator)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def to_string(self, format: str = "json", **options: Any) -> str:
        return get_format(format).dump(self._data, **options)

    def flatten(self, separator: Optional[str] = None) -> Dict[str, Any]:
        """Collapse nested values into a single level keyed by full paths."""
        result: Dict[str, Any] = {}
        self._flatten(separator or self.separator, self._data, result, "")
        return result

    def _flatten(self, separator: str, data: Any, result: Dict[str, Any], prefix: str) -> None:
        items = data.items() if isinstance(data, dict) else enumerate(data)
        for key, value in items:
            full_key = f"{prefix}{separator}{key}" if prefix else str(key)
            if isinstance(value, (dict, list)):
                self._flatten(separator, value, result, full_key)
                continue
            result[full_key] = value

    def copy(self) -> "Registry":
        return Registry(self._data, self.separator)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    def __getitem__(self, path: str) -> Any:
        return self.get(path)

    def __setitem__(self, path: str, value: Any) -> None:
        self.set(path, value)

    def __delitem__(self, path: str) -> None:
        self.remove(path)

    def __copy__(self) -> "Registry":
        return self.copy()

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Registry({self._data!r})"
