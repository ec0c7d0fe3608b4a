"""
Tessera - Security Errors

Errors raised by the authentication chain, password handlers and the
crypt wrappers.
"""

from typing import Any

from core.errors import AuthenticationError, CryptError, ErrorSeverity


class StrategyNotFoundError(AuthenticationError, LookupError):
    """A requested authentication strategy is not registered."""

    error_code = "AUTH_STRATEGY_NOT_FOUND"

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(f"Authentication strategy '{name}' not found.", **kwargs)
        self.strategy = name


class NoStrategiesError(AuthenticationError, RuntimeError):
    """Authentication was attempted without any strategy."""

    error_code = "AUTH_NO_STRATEGIES"

    def __init__(self, **kwargs: Any):
        super().__init__("No authentication strategies have been set.", **kwargs)


class UnsupportedPasswordHandlerError(AuthenticationError, ValueError):
    """The requested password handler is unknown or unavailable."""

    error_code = "AUTH_UNSUPPORTED_PASSWORD_HANDLER"


class InvalidKeyTypeError(CryptError, ValueError):
    """A key of the wrong type was given to a cipher."""

    error_code = "CRYPT_INVALID_KEY_TYPE"

    def __init__(self, expected: str, actual: str, **kwargs: Any):
        super().__init__(f"Invalid key of type: {actual}. Expected {expected}.", **kwargs)
        self.expected = expected
        self.actual = actual


class InvalidKeyError(CryptError, ValueError):
    """The key material is malformed."""

    error_code = "CRYPT_INVALID_KEY"


class EncryptionError(CryptError, RuntimeError):
    error_code = "CRYPT_ENCRYPTION_FAILED"


class DecryptionError(CryptError, RuntimeError):
    error_code = "CRYPT_DECRYPTION_FAILED"
    default_severity = ErrorSeverity.WARNING


class UnsupportedCipherError(CryptError, RuntimeError):
    error_code = "CRYPT_UNSUPPORTED_CIPHER"
    default_severity = ErrorSeverity.CRITICAL
