"""
Tessera - Crypt

Symmetric encryption behind a small cipher interface.

Ciphers:
- FernetCipher: Fernet tokens (AES-128-CBC + HMAC-SHA256), key type ``fernet``
- AesGcmCipher: AES-GCM with a random 96-bit nonce, key type ``aes-gcm``

Usage:
    crypt = Crypt()
    token = crypt.encrypt("secret")
    crypt.decrypt(token)  # "secret"
"""

from __future__ import annotations

import base64
import binascii
import os
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union

from cryptography.exceptions import InvalidTag
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from security.exceptions import (
    DecryptionError,
    EncryptionError,
    InvalidKeyError,
    InvalidKeyTypeError,
    UnsupportedCipherError,
)

Data = Union[str, bytes]


@dataclass(frozen=True)
class Key:
    """Key material for a cipher."""

    type: str
    private: str
    public: str = ""


class Cipher(ABC):
    """Symmetric cipher working on a ``Key`` of its own type."""

    key_type: str = ""

    @abstractmethod
    def encrypt(self, data: Data, key: Key) -> str:
        """Encrypt ``data`` and return a text-safe token."""

    @abstractmethod
    def decrypt(self, data: str, key: Key) -> str:
        """Decrypt a token produced by ``encrypt``."""

    @abstractmethod
    def generate_key(self, **options: Any) -> Key:
        """Create a new key for this cipher."""

    @classmethod
    def is_supported(cls) -> bool:
        return True

    def _check_key(self, key: Key) -> None:
        if key.type != self.key_type:
            raise InvalidKeyTypeError(self.key_type, key.type)


class FernetCipher(Cipher):
    key_type = "fernet"

    def _fernet(self, key: Key) -> Fernet:
        self._check_key(key)
        try:
            return Fernet(key.private)
        except (ValueError, binascii.Error) as e:
            raise InvalidKeyError("Fernet keys must be 32 url-safe base64-encoded bytes.", cause=e) from e

    def encrypt(self, data: Data, key: Key) -> str:
        fernet = self._fernet(key)
        try:
            return fernet.encrypt(_to_bytes(data)).decode("ascii")
        except (TypeError, ValueError) as e:
            raise EncryptionError("Unable to encrypt the data.", cause=e) from e

    def decrypt(self, data: str, key: Key) -> str:
        fernet = self._fernet(key)
        try:
            return fernet.decrypt(_to_bytes(data)).decode("utf-8")
        except (InvalidToken, UnicodeDecodeError) as e:
            raise DecryptionError("Unable to decrypt the data.", cause=e) from e

    def generate_key(self, **options: Any) -> Key:
        return Key(self.key_type, Fernet.generate_key().decode("ascii"))


class AesGcmCipher(Cipher):
    key_type = "aes-gcm"
    nonce_size = 12

    def _aesgcm(self, key: Key) -> AESGCM:
        self._check_key(key)
        try:
            raw = base64.urlsafe_b64decode(key.private.encode("ascii"))
            return AESGCM(raw)
        except (ValueError, binascii.Error) as e:
            raise InvalidKeyError("AES-GCM keys must be 128, 192 or 256 bits.", cause=e) from e

    def encrypt(self, data: Data, key: Key) -> str:
        aesgcm = self._aesgcm(key)
        nonce = os.urandom(self.nonce_size)
        try:
            encrypted = aesgcm.encrypt(nonce, _to_bytes(data), None)
        except (TypeError, ValueError, OverflowError) as e:
            raise EncryptionError("Unable to encrypt the data.", cause=e) from e
        return base64.urlsafe_b64encode(nonce + encrypted).decode("ascii")

    def decrypt(self, data: str, key: Key) -> str:
        aesgcm = self._aesgcm(key)
        try:
            raw = base64.urlsafe_b64decode(_to_bytes(data))
            nonce, encrypted = raw[:self.nonce_size], raw[self.nonce_size:]
            return aesgcm.decrypt(nonce, encrypted, None).decode("utf-8")
        except (InvalidTag, ValueError, binascii.Error) as e:
            raise DecryptionError("Unable to decrypt the data.", cause=e) from e

    def generate_key(self, **options: Any) -> Key:
        bits = int(options.get("bits", 256))
        try:
            raw = AESGCM.generate_key(bit_length=bits)
        except ValueError as e:
            raise InvalidKeyError(f"Unsupported AES key size: {bits} bits.", cause=e) from e
        return Key(self.key_type, base64.urlsafe_b64encode(raw).decode("ascii"))


CIPHERS: Dict[str, Type[Cipher]] = {
    FernetCipher.key_type: FernetCipher,
    AesGcmCipher.key_type: AesGcmCipher,
}


def get_cipher(name: str) -> Cipher:
    """
    Create the cipher registered under ``name``.

    Raises:
        UnsupportedCipherError: If the cipher is unknown or unavailable
    """
    cipher_cls = CIPHERS.get(name.lower())
    if cipher_cls is None:
        raise UnsupportedCipherError(
            f"The '{name}' cipher is not supported.",
            suggestions=[f"Use one of: {', '.join(CIPHERS)}"],
        )
    return cipher_cls()


class Crypt:
    """
    Encryption facade binding a cipher to a key.

    Args:
        cipher: Cipher to use, Fernet by default
        key: Key to use, generated by the cipher when omitted

    Raises:
        UnsupportedCipherError: If the cipher is not supported in this environment
    """

    def __init__(self, cipher: Optional[Cipher] = None, key: Optional[Key] = None):
        self.cipher = cipher or FernetCipher()

        if not self.cipher.is_supported():
            raise UnsupportedCipherError(
                f"The {type(self.cipher).__name__} cipher is not supported in this environment."
            )

        self.key = key or self.cipher.generate_key()

    def encrypt(self, data: Data) -> str:
        return self.cipher.encrypt(data, self.key)

    def decrypt(self, data: str) -> str:
        return self.cipher.decrypt(data, self.key)

    def generate_key(self, **options: Any) -> Key:
        return self.cipher.generate_key(**options)

    def get_key(self) -> Key:
        return self.key

    def set_key(self, key: Key) -> "Crypt":
        self.key = key
        return self

    @staticmethod
    def gen_random_bytes(length: int = 16) -> bytes:
        """Generate cryptographically secure random bytes."""
        return secrets.token_bytes(length)


def _to_bytes(data: Data) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data
