"""
Tessera - Registry Formats

String formats a Registry can be loaded from and dumped to.

Formats:
- json: JSON objects (falls back to INI for non-JSON input)
- ini: INI files with optional sections and array values
- xml: ``<registry><node name="..." type="...">`` documents
- yaml: YAML mappings

Usage:
    fmt = get_format("yaml")
    text = fmt.dump({"database": {"host": "localhost"}})
    fmt.load(text)
"""

from __future__ import annotations

import copy
import functools
import json
import math
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Type

import yaml

from core.errors import RegistryFormatError


class Format(ABC):
    """Converts registry data to and from a string representation."""

    name: str = ""

    @abstractmethod
    def dump(self, data: Dict[str, Any], **options: Any) -> str:
        """Convert ``data`` to a string."""

    @abstractmethod
    def load(self, text: str, **options: Any) -> Dict[str, Any]:
        """Parse ``text`` into a dict."""


def _as_mapping(value: Any, format_name: str) -> Dict[str, Any]:
    """Coerce a decoded top-level value into a dict."""
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(index): item for index, item in enumerate(value)}
    raise RegistryFormatError(
        f"Expected a mapping at the top level, got {type(value).__name__}",
        format_name=format_name,
    )


class JsonFormat(Format):
    """
    JSON format.

    Options:
        indent: Indentation passed to ``json.dumps``
        sort_keys: Sort object keys when dumping
    """

    name = "json"

    def dump(self, data: Dict[str, Any], **options: Any) -> str:
        return json.dumps(
            data,
            indent=options.get("indent"),
            sort_keys=options.get("sort_keys", False),
            ensure_ascii=options.get("ensure_ascii", True),
        )

    def load(self, text: str, **options: Any) -> Dict[str, Any]:
        text = text.strip()
        if not text:
            return {}

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            # Plain key=value content is accepted as INI
            if text[0] != "{":
                return get_format("ini").load(text, **options)
            raise RegistryFormatError(
                f"Error decoding JSON data: {e.msg}",
                format_name=self.name,
                cause=e,
            ) from e

        return _as_mapping(decoded, self.name)


class IniFormat(Format):
    """
    INI format.

    Options:
        support_array_values: Read and write ``key[]=value`` / ``key[name]=value``
        parse_boolean_words: Read unquoted yes/no as booleans
        process_sections: Read ``[section]`` headers into nested dicts
    """

    name = "ini"

    DEFAULT_OPTIONS: Dict[str, bool] = {
        "support_array_values": False,
        "parse_boolean_words": False,
        "process_sections": False,
    }

    _KEY_PATTERN = re.compile(r"[^A-Za-z0-9_]")
    _NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
    _ESCAPE_PATTERN = re.compile(r"\\(.)")
    _ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}

    def dump(self, data: Dict[str, Any], **options: Any) -> str:
        options = {**self.DEFAULT_OPTIONS, **options}
        arrays = options["support_array_values"]

        local: List[str] = []
        global_: List[str] = []
        last = len(data)
        in_section = True

        for key, value in data.items():
            if isinstance(value, dict):
                if not in_section:
                    local.append("")
                local.append(f"[{key}]")

                for sub_key, sub_value in value.items():
                    if isinstance(sub_value, (list, dict)) and arrays:
                        local.extend(self._array_lines(sub_key, sub_value))
                    else:
                        local.append(f"{sub_key}={self._value_as_ini(sub_value)}")

                last -= 1
                if last != 0:
                    local.append("")
            elif isinstance(value, list) and arrays:
                global_.extend(self._array_lines(key, value))
            else:
                global_.append(f"{key}={self._value_as_ini(value)}")
                in_section = False

        return "\n".join(global_ + local)

    def _array_lines(self, key: str, values: Any) -> Iterable[str]:
        if isinstance(values, dict):
            for array_key, item in values.items():
                yield f"{key}[{array_key}]={self._value_as_ini(item)}"
        else:
            for item in values:
                yield f"{key}[]={self._value_as_ini(item)}"

    @staticmethod
    def _value_as_ini(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str):
            escaped = value.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n")
            return '"' + escaped + '"'
        return ""

    def load(self, text: str, **options: Any) -> Dict[str, Any]:
        options = {**self.DEFAULT_OPTIONS, **options}
        if not text:
            return {}

        parsed = self._parse(
            text,
            bool(options["support_array_values"]),
            bool(options["parse_boolean_words"]),
            bool(options["process_sections"]),
        )
        return copy.deepcopy(parsed)

    @classmethod
    @functools.lru_cache(maxsize=256)
    def _parse(
        cls,
        text: str,
        support_array_values: bool,
        parse_boolean_words: bool,
        process_sections: bool,
    ) -> Dict[str, Any]:
        """Parse ``text``; results are cached by text and options and must not be mutated."""
        result: Dict[str, Any] = {}
        section = None

        for raw_line in text.split("\n"):
            line = raw_line.strip()

            if not line or line[0] == ";":
                continue

            if process_sections:
                if line[0] == "[" and line[-1] == "]":
                    section = line[1:-1]
                    result[section] = {}
                    continue
            elif line[0] == "[":
                continue

            # The equals sign must exist and cannot start the line
            if line.find("=") <= 0:
                continue

            key, value = line.split("=", 1)
            array_key = None

            open_brace = key.find("[", 1)
            if key.endswith("]") and open_brace != -1:
                if not support_array_values:
                    continue
                array_key = key[open_brace + 1:-1]
                if "[" in array_key or "]" in array_key:
                    continue
                key = key[:open_brace]

            if cls._KEY_PATTERN.search(key):
                continue

            target = result[section] if section is not None else result
            parsed = cls._parse_value(value, parse_boolean_words)

            if array_key is None:
                target[key] = parsed
            else:
                cls._add_array_value(target, key, array_key, parsed)

        return result

    @classmethod
    def _parse_value(cls, value: str, parse_boolean_words: bool) -> Any:
        if value and value[0] == '"' and value[-1] == '"':
            return cls._ESCAPE_PATTERN.sub(
                lambda m: cls._ESCAPES.get(m.group(1), m.group(1)),
                value[1:-1],
            )

        if value == "false":
            return False
        if value == "true":
            return True
        if parse_boolean_words and value.lower() in ("yes", "no"):
            return value.lower() == "yes"
        if cls._NUMERIC_PATTERN.match(value):
            number = float(value)
            # Exponents beyond the float range are kept as written
            if not math.isfinite(number):
                return value
            if "." in value:
                return number
            return int(number) if "e" in value.lower() else int(value)
        return value

    @staticmethod
    def _add_array_value(target: Dict[str, Any], key: str, array_key: str, value: Any) -> None:
        current = target.get(key)

        if array_key:
            if isinstance(current, list):
                current = {str(index): item for index, item in enumerate(current)}
            elif not isinstance(current, dict):
                current = {}
            current[array_key] = value
        elif isinstance(current, dict):
            current[str(len(current))] = value
        else:
            if not isinstance(current, list):
                current = []
            current.append(value)

        target[key] = current


class XmlFormat(Format):
    """
    XML format.

    Options:
        name: Root element name (default ``registry``)
        node_name: Element name of every value (default ``node``)
    """

    name = "xml"

    def dump(self, data: Dict[str, Any], **options: Any) -> str:
        root = ET.Element(options.get("name", "registry"))
        self._add_children(root, data, options.get("node_name", "node"))
        return '<?xml version="1.0"?>\n' + ET.tostring(root, encoding="unicode")

    def _add_children(self, node: ET.Element, value: Any, node_name: str) -> None:
        items = value.items() if isinstance(value, dict) else enumerate(value)
        for key, item in items:
            child = ET.SubElement(node, node_name, {"name": str(key), "type": _xml_type(item)})
            if isinstance(item, (dict, list)):
                self._add_children(child, item, node_name)
            elif isinstance(item, bool):
                child.text = "1" if item else ""
            elif item is not None:
                child.text = str(item)

    def load(self, text: str, **options: Any) -> Dict[str, Any]:
        if not text.strip():
            return {}

        try:
            root = ET.fromstring(text.strip())
        except ET.ParseError as e:
            raise RegistryFormatError(
                f"Error parsing XML data: {e}",
                format_name=self.name,
                cause=e,
            ) from e

        return {node.get("name", ""): self._value_from_node(node) for node in root}

    def _value_from_node(self, node: ET.Element) -> Any:
        node_type = node.get("type")
        content = node.text or ""

        try:
            if node_type == "integer":
                return int(content.strip() or 0)
            if node_type == "double":
                return float(content.strip() or 0)
        except ValueError as e:
            raise RegistryFormatError(
                f"Invalid {node_type} value '{content}' for node '{node.get('name')}'",
                format_name=self.name,
                cause=e,
            ) from e

        if node_type == "string":
            return content
        if node_type == "boolean":
            return content not in ("", "0")
        if node_type == "NULL":
            return None
        if node_type == "array":
            return [self._value_from_node(child) for child in node]
        return {child.get("name", ""): self._value_from_node(child) for child in node}


def _xml_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "NULL"
    return "object"


class YamlFormat(Format):
    """YAML format backed by PyYAML's safe loader and dumper."""

    name = "yaml"

    def dump(self, data: Dict[str, Any], **options: Any) -> str:
        return yaml.safe_dump(
            data,
            default_flow_style=False,
            sort_keys=options.get("sort_keys", False),
            allow_unicode=True,
            indent=options.get("indent", 2),
        )

    def load(self, text: str, **options: Any) -> Dict[str, Any]:
        text = text.strip()
        if not text:
            return {}

        try:
            decoded = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise RegistryFormatError(
                f"Error parsing YAML data: {e}",
                format_name=self.name,
                cause=e,
            ) from e

        if decoded is None:
            return {}
        return _as_mapping(decoded, self.name)


_FORMATS: Dict[str, Type[Format]] = {
    "json": JsonFormat,
    "ini": IniFormat,
    "xml": XmlFormat,
    "yaml": YamlFormat,
    "yml": YamlFormat,
}


def _normalize(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "", name).lower()


def register_format(name: str, format_cls: Type[Format]) -> None:
    """Make a custom format available to ``get_format``."""
    _FORMATS[_normalize(name)] = format_cls


def available_formats() -> List[str]:
    return sorted(_FORMATS)


def get_format(name: str) -> Format:
    """
    Create the format registered under ``name``.

    Raises:
        RegistryFormatError: If no format is registered under that name
    """
    format_cls = _FORMATS.get(_normalize(name))
    if format_cls is None:
        raise RegistryFormatError(
            f"Unable to load format class for type '{name}'.",
            format_name=name,
            suggestions=[f"Use one of: {', '.join(available_formats())}"],
        )
    return format_cls()
