"""
Tessera - Password Handlers

Hashing and verification of stored passwords.

Handlers:
- BCryptHandler: bcrypt hashes (default)
- Pbkdf2Handler: PBKDF2-HMAC-SHA256 hashes in ``pbkdf2_sha256$iterations$salt$hash`` form
"""

from __future__ import annotations

import base64
import secrets
from abc import ABC, abstractmethod
from typing import Any, Dict, Type

import bcrypt
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from security.exceptions import UnsupportedPasswordHandlerError


class PasswordHandler(ABC):
    """Hashes passwords and validates plaintext against stored hashes."""

    @abstractmethod
    def hash_password(self, plaintext: str, **options: Any) -> str:
        """Generate a hash for ``plaintext``."""

    @abstractmethod
    def validate_password(self, plaintext: str, hashed: str) -> bool:
        """Check ``plaintext`` against a stored hash."""

    @classmethod
    def is_supported(cls) -> bool:
        return True


class BCryptHandler(PasswordHandler):
    """
    bcrypt password handler.

    Args:
        rounds: Default work factor, overridable per call with ``rounds=``
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_password(self, plaintext: str, **options: Any) -> str:
        salt = bcrypt.gensalt(rounds=options.get("rounds", self.rounds))
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def validate_password(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash
            return False


class Pbkdf2Handler(PasswordHandler):
    """PBKDF2-HMAC-SHA256 password handler."""

    algorithm = "pbkdf2_sha256"
    length = 32

    def __init__(self, iterations: int = 600_000):
        self.iterations = iterations

    def _kdf(self, salt: str, iterations: int) -> PBKDF2HMAC:
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.length,
            salt=salt.encode("utf-8"),
            iterations=iterations,
        )

    def hash_password(self, plaintext: str, **options: Any) -> str:
        iterations = int(options.get("iterations", self.iterations))
        salt = options.get("salt") or secrets.token_hex(16)
        digest = self._kdf(salt, iterations).derive(plaintext.encode("utf-8"))
        encoded = base64.b64encode(digest).decode("ascii")
        return f"{self.algorithm}${iterations}${salt}${encoded}"

    def validate_password(self, plaintext: str, hashed: str) -> bool:
        try:
            algorithm, iterations, salt, encoded = hashed.split("$", 3)
            rounds = int(iterations)
            expected = base64.b64decode(encoded, validate=True)
        except ValueError:
            return False
        if algorithm != self.algorithm or rounds < 1:
            return False

        try:
            self._kdf(salt, rounds).verify(plaintext.encode("utf-8"), expected)
        except InvalidKey:
            return False
        return True


PASSWORD_HANDLERS: Dict[str, Type[PasswordHandler]] = {
    "bcrypt": BCryptHandler,
    "pbkdf2": Pbkdf2Handler,
}


def get_password_handler(name: str, **kwargs: Any) -> PasswordHandler:
    """
    Create the password handler registered under ``name``.

    Raises:
        UnsupportedPasswordHandlerError: If the handler is unknown or unavailable
    """
    handler_cls = PASSWORD_HANDLERS.get(name.lower())
    if handler_cls is None:
        raise UnsupportedPasswordHandlerError(
            f"The '{name}' password handler is not supported.",
            suggestions=[f"Use one of: {', '.join(PASSWORD_HANDLERS)}"],
        )
    if not handler_cls.is_supported():
        raise UnsupportedPasswordHandlerError(
            f"The '{name}' password handler is not supported in this environment."
        )
    return handler_cls(**kwargs)
