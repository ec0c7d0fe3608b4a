"""
Tessera - Registry Module

Hierarchical, path-addressed configuration data with JSON, INI, XML and
YAML formats.

Usage:
    from registry import Registry

    registry = Registry().load_file("settings.yaml", "yaml")
    registry.get("mail.smtp.host", "localhost")
"""

from registry.formats import (
    Format,
    IniFormat,
    JsonFormat,
    XmlFormat,
    YamlFormat,
    available_formats,
    get_format,
    register_format,
)
from registry.registry import Registry

__all__ = [
    "Registry",
    "Format",
    "IniFormat",
    "JsonFormat",
    "XmlFormat",
    "YamlFormat",
    "available_formats",
    "get_format",
    "register_format",
]
