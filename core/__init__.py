"""
Tessera - Core Module

Foundational pieces shared by every Tessera package:
- Unified error handling
- Regular expression builder helpers

The application bootstrap lives in ``core.bootstrap`` and is imported
explicitly, since it depends on the other packages.

Usage:
    from core import TesseraError, ErrorSeverity, regex
"""

from core.errors import (
    AuthenticationError,
    ConfigError,
    ContainerError,
    CryptError,
    DatabaseError,
    ErrorContext,
    ErrorSeverity,
    EventError,
    RegistryFormatError,
    TesseraError,
    classify_error,
)
from core import regex

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "ContainerError",
    "CryptError",
    "DatabaseError",
    "ErrorContext",
    "ErrorSeverity",
    "EventError",
    "RegistryFormatError",
    "TesseraError",
    "classify_error",
    "regex",
]
