"""
Tessera - Security Module

Provides:
- An ordered authentication strategy chain with status tracking
- Username/password strategies (in-memory store, database table)
- Password handlers (bcrypt, PBKDF2)
- Symmetric encryption wrappers (Fernet, AES-GCM)
"""

from security.auth import Authentication, AuthenticationStrategy, AuthStatus
from security.crypt import AesGcmCipher, Cipher, Crypt, FernetCipher, Key, get_cipher
from security.exceptions import (
    DecryptionError,
    EncryptionError,
    InvalidKeyError,
    InvalidKeyTypeError,
    NoStrategiesError,
    StrategyNotFoundError,
    UnsupportedCipherError,
    UnsupportedPasswordHandlerError,
)
from security.passwords import (
    BCryptHandler,
    PasswordHandler,
    Pbkdf2Handler,
    get_password_handler,
)
from security.strategies import DatabaseStrategy, LocalStrategy, UsernamePasswordStrategy

__all__ = [
    "Authentication",
    "AuthenticationStrategy",
    "AuthStatus",
    "UsernamePasswordStrategy",
    "LocalStrategy",
    "DatabaseStrategy",
    "PasswordHandler",
    "BCryptHandler",
    "Pbkdf2Handler",
    "get_password_handler",
    "Cipher",
    "Crypt",
    "FernetCipher",
    "AesGcmCipher",
    "Key",
    "get_cipher",
    "DecryptionError",
    "EncryptionError",
    "InvalidKeyError",
    "InvalidKeyTypeError",
    "NoStrategiesError",
    "StrategyNotFoundError",
    "UnsupportedCipherError",
    "UnsupportedPasswordHandlerError",
]
