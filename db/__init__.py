"""
Tessera - Database Layer

Databases are consumed through a narrow query execution interface:
- QueryExecutor: the protocol consumers depend on
- SqlAlchemyExecutor: SQLAlchemy-backed implementation with table prefixes
- Query monitors: hooks around every executed statement
- Connection events dispatched on connect/disconnect

Usage:
    from db import SqlAlchemyExecutor, DebugMonitor

    monitor = DebugMonitor()
    executor = SqlAlchemyExecutor("sqlite:///:memory:", monitor=monitor)
    executor.fetch_value("SELECT 1")
    monitor.get_logs()  # ["SELECT 1"]
"""

from db.events import ConnectionEvent, DatabaseEvents
from db.executor import QueryExecutor, SqlAlchemyExecutor
from db.monitor import ChainedMonitor, DebugMonitor, LoggingMonitor, QueryMonitor

__all__ = [
    "ConnectionEvent",
    "DatabaseEvents",
    "QueryExecutor",
    "SqlAlchemyExecutor",
    "QueryMonitor",
    "ChainedMonitor",
    "DebugMonitor",
    "LoggingMonitor",
]
