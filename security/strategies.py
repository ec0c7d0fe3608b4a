"""
Tessera - Authentication Strategies

Username/password strategies checking credentials against an in-memory
store or a database table.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from typing import Any, Dict, Mapping, Optional

import structlog

from core.errors import DatabaseError
from db.executor import QueryExecutor
from security.auth import AuthenticationStrategy, AuthStatus
from security.passwords import BCryptHandler, PasswordHandler

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-\(\)]+$")


class UsernamePasswordStrategy(AuthenticationStrategy):
    """Base for strategies verifying a username and a password hash."""

    def __init__(self, password_handler: Optional[PasswordHandler] = None):
        self.password_handler = password_handler or BCryptHandler()

    @abstractmethod
    def get_hashed_password(self, username: str) -> Optional[str]:
        """Look up the stored hash for ``username``."""

    def verify_password(self, username: str, password: str, hashed: str) -> bool:
        return self.password_handler.validate_password(password, hashed)

    def do_authenticate(self, username: str, password: str) -> Optional[str]:
        hashed = self.get_hashed_password(username)

        if not hashed:
            self.status = AuthStatus.NO_SUCH_USER
            return None

        if not self.verify_password(username, password, hashed):
            self.status = AuthStatus.INVALID_CREDENTIALS
            return None

        self.status = AuthStatus.SUCCESS
        return username


class _CredentialsStrategy(UsernamePasswordStrategy):
    """Reads the username and password from a credentials mapping."""

    def __init__(
        self,
        credentials: Mapping[str, Any],
        password_handler: Optional[PasswordHandler] = None,
    ):
        super().__init__(password_handler)
        self.credentials = credentials

    def authenticate(self) -> Optional[str]:
        username = self.credentials.get("username")
        password = self.credentials.get("password")

        if not username or not password:
            self.status = AuthStatus.NO_CREDENTIALS
            return None

        return self.do_authenticate(str(username), str(password))


class LocalStrategy(_CredentialsStrategy):
    """
    Authenticate against an in-memory mapping of username to password hash.

    Usage:
        store = {"alice": BCryptHandler().hash_password("secret")}
        strategy = LocalStrategy({"username": "alice", "password": "secret"}, store)
        strategy.authenticate()  # "alice"
    """

    def __init__(
        self,
        credentials: Mapping[str, Any],
        store: Mapping[str, str],
        password_handler: Optional[PasswordHandler] = None,
    ):
        super().__init__(credentials, password_handler)
        self.store = store

    def get_hashed_password(self, username: str) -> Optional[str]:
        return self.store.get(username)


class DatabaseStrategy(_CredentialsStrategy):
    """
    Authenticate against a users table.

    Options:
        database_table: Users table, ``#__`` is replaced by the table prefix
        username_column: Column matched against usernames
        password_column: Column holding the password hash
        email_column: Column matched when the identifier looks like an email
        phone_column: Column matched when the identifier looks like a phone number
    """

    DEFAULT_OPTIONS: Dict[str, Optional[str]] = {
        "database_table": "#__users",
        "username_column": "username",
        "password_column": "password",
        "email_column": None,
        "phone_column": None,
    }

    def __init__(
        self,
        credentials: Mapping[str, Any],
        executor: QueryExecutor,
        options: Optional[Mapping[str, Optional[str]]] = None,
        password_handler: Optional[PasswordHandler] = None,
    ):
        super().__init__(credentials, password_handler)
        self.executor = executor
        self.options = {**self.DEFAULT_OPTIONS, **(options or {})}

    @staticmethod
    def determine_input_type(identifier: str) -> str:
        """Classify a login identifier as ``email``, ``phone`` or ``username``."""
        identifier = identifier.strip()
        if EMAIL_PATTERN.match(identifier):
            return "email"
        if PHONE_PATTERN.match(identifier):
            return "phone"
        return "username"

    def identifier_column(self, identifier: str) -> str:
        input_type = self.determine_input_type(identifier)
        column = self.options.get(f"{input_type}_column")
        return column or self.options["username_column"]

    def get_hashed_password(self, username: str) -> Optional[str]:
        quote = self.executor.quote_name
        sql = (
            f"SELECT {quote(self.options['password_column'])} "
            f"FROM {quote(self.options['database_table'])} "
            f"WHERE {quote(self.identifier_column(username))} = :identifier"
        )

        try:
            hashed = self.executor.fetch_value(sql, {"identifier": username})
        except DatabaseError as e:
            logger.warning("Password lookup failed", error=e.message)
            return None

        return str(hashed) if hashed else None
