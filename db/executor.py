"""
Tessera - Query Execution

A narrow query execution interface and its SQLAlchemy implementation.
Statements may reference tables through the ``#__`` placeholder, which
is replaced by the configured table prefix before execution.

Usage:
    executor = SqlAlchemyExecutor("sqlite:///app.db", table_prefix="app_")
    executor.execute("CREATE TABLE #__users (username TEXT, password TEXT)")
    executor.fetch_value("SELECT password FROM #__users WHERE username = :u", {"u": "alice"})
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import DatabaseError
from db.events import ConnectionEvent, DatabaseEvents
from db.monitor import QueryMonitor
from events.dispatcher import Dispatcher, DispatcherAware

logger = structlog.get_logger(__name__)

PREFIX_PLACEHOLDER = "#__"

# Single-quoted string literals, with '' escapes
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")


@runtime_checkable
class QueryExecutor(Protocol):
    """What consumers of a database need from it."""

    def fetch_value(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...

    def quote_name(self, name: str) -> str: ...

    def replace_prefix(self, sql: str) -> str: ...


class SqlAlchemyExecutor(DispatcherAware):
    """
    Query executor backed by a SQLAlchemy engine.

    Args:
        url_or_engine: Database URL or an existing engine
        table_prefix: Replacement for the ``#__`` placeholder
        monitor: Query monitor notified around every statement
        dispatcher: Receives connect/disconnect events
        echo: Echo SQL through SQLAlchemy's own logging
    """

    def __init__(
        self,
        url_or_engine: Union[str, Engine],
        table_prefix: str = "",
        monitor: Optional[QueryMonitor] = None,
        dispatcher: Optional[Dispatcher] = None,
        echo: bool = False,
    ):
        if isinstance(url_or_engine, str):
            self.engine = create_engine(url_or_engine, echo=echo)
        else:
            self.engine = url_or_engine
        self.table_prefix = table_prefix
        self.monitor = monitor
        if dispatcher is not None:
            self.set_dispatcher(dispatcher)
        self._connection: Optional[Connection] = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        """Open the connection if needed and announce it."""
        if self._connection is not None:
            return

        try:
            self._connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not connect to the database: {e}", cause=e) from e

        logger.info("Database connected", dialect=self.engine.dialect.name)
        self._dispatch(DatabaseEvents.POST_CONNECT)

    def disconnect(self) -> None:
        if self._connection is None:
            return

        self._connection.close()
        self._connection = None
        logger.info("Database disconnected", dialect=self.engine.dialect.name)
        self._dispatch(DatabaseEvents.POST_DISCONNECT)

    def __enter__(self) -> "SqlAlchemyExecutor":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    def quote_name(self, name: str) -> str:
        return self.engine.dialect.identifier_preparer.quote(name)

    def replace_prefix(self, sql: str, placeholder: str = PREFIX_PLACEHOLDER) -> str:
        """Replace the table prefix placeholder outside of string literals."""
        parts: List[str] = []
        position = 0
        for literal in _STRING_LITERAL.finditer(sql):
            parts.append(sql[position:literal.start()].replace(placeholder, self.table_prefix))
            parts.append(literal.group(0))
            position = literal.end()
        parts.append(sql[position:].replace(placeholder, self.table_prefix))
        return "".join(parts)

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Execute a statement, commit, and return the affected row count."""
        rowcount = self._run(sql, params, lambda result: result.rowcount)
        self._connection.commit()
        return rowcount

    def fetch_value(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """First column of the first row, or None."""
        return self._run(sql, params, lambda result: result.scalar())

    def fetch_all(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._run(sql, params, lambda result: [dict(row) for row in result.mappings()])

    def _run(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]],
        consume: Callable[[CursorResult], Any],
    ) -> Any:
        self.connect()
        sql = self.replace_prefix(sql)

        if self.monitor is not None:
            self.monitor.start_query(sql, params)
        try:
            result = self._connection.execute(text(sql), dict(params or {}))
            return consume(result)
        except SQLAlchemyError as e:
            self._connection.rollback()
            raise DatabaseError(f"Query failed: {e}", query=sql, cause=e) from e
        finally:
            if self.monitor is not None:
                self.monitor.stop_query()

    def _dispatch(self, name: str) -> None:
        if self._dispatcher is not None:
            self._dispatcher.dispatch(name, ConnectionEvent(name, self))
