"""
Tessera - Query Monitors

Observers invoked around each executed statement.

Monitors:
- ChainedMonitor: fans calls out to several monitors
- DebugMonitor: records statements, parameters, call stacks, memory and timings
- LoggingMonitor: logs every executed statement
"""

from __future__ import annotations

import copy
import time
import traceback
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

import psutil
import structlog


class QueryMonitor(ABC):
    """Hook called before and after a statement runs."""

    @abstractmethod
    def start_query(self, sql: str, bound_params: Optional[Mapping[str, Any]] = None) -> None:
        """Called right before ``sql`` is executed."""

    @abstractmethod
    def stop_query(self) -> None:
        """Called once the statement has finished."""


class ChainedMonitor(QueryMonitor):
    """Forward every call to each registered monitor, in order."""

    def __init__(self, *monitors: QueryMonitor):
        self.monitors: List[QueryMonitor] = list(monitors)

    def add_monitor(self, monitor: QueryMonitor) -> "ChainedMonitor":
        self.monitors.append(monitor)
        return self

    def start_query(self, sql: str, bound_params: Optional[Mapping[str, Any]] = None) -> None:
        for monitor in self.monitors:
            monitor.start_query(sql, bound_params)

    def stop_query(self) -> None:
        for monitor in self.monitors:
            monitor.stop_query()


class DebugMonitor(QueryMonitor):
    """
    Record diagnostics for every statement.

    ``get_timings`` and ``get_memory_logs`` hold two entries per statement
    (start and stop). The other getters hold one entry per statement.
    """

    def __init__(self) -> None:
        self._call_stacks: List[traceback.StackSummary] = []
        self._logs: List[str] = []
        self._bound_params: List[Optional[Mapping[str, Any]]] = []
        self._memory_logs: List[int] = []
        self._timings: List[float] = []
        self._process = psutil.Process()

    def start_query(self, sql: str, bound_params: Optional[Mapping[str, Any]] = None) -> None:
        self._logs.append(sql)
        self._bound_params.append(copy.deepcopy(bound_params))
        # Drop this frame from the recorded stack
        self._call_stacks.append(traceback.StackSummary.from_list(traceback.extract_stack()[:-1]))
        self._memory_logs.append(self._process.memory_info().rss)
        self._timings.append(time.time())

    def stop_query(self) -> None:
        self._timings.append(time.time())
        self._memory_logs.append(self._process.memory_info().rss)

    def get_call_stacks(self) -> List[traceback.StackSummary]:
        return self._call_stacks

    def get_logs(self) -> List[str]:
        return self._logs

    def get_bound_params(self) -> List[Optional[Mapping[str, Any]]]:
        return self._bound_params

    def get_memory_logs(self) -> List[int]:
        return self._memory_logs

    def get_timings(self) -> List[float]:
        return self._timings

    def get_durations(self) -> List[float]:
        """Elapsed seconds of each completed statement."""
        return [
            stop - start
            for start, stop in zip(self._timings[::2], self._timings[1::2])
        ]


class LoggingMonitor(QueryMonitor):
    """
    Log each executed statement.

    Does nothing until a logger is set.
    """

    def __init__(self, logger: Optional[Any] = None):
        self.logger = logger

    def set_logger(self, logger: Any) -> "LoggingMonitor":
        self.logger = logger
        return self

    @classmethod
    def with_default_logger(cls) -> "LoggingMonitor":
        return cls(structlog.get_logger("tessera.db.query"))

    def start_query(self, sql: str, bound_params: Optional[Mapping[str, Any]] = None) -> None:
        if self.logger is not None:
            self.logger.debug("Query Executed", sql=sql, params=dict(bound_params or {}))

    def stop_query(self) -> None:
        pass
