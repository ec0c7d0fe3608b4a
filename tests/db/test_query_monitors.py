"""
Tests for db/monitor.py - Query Monitors.
"""
import traceback
from unittest.mock import Mock

import pytest

from db import ChainedMonitor, DebugMonitor, LoggingMonitor, QueryMonitor


class TestDebugMonitor:
    """Tests for DebugMonitor."""

    def test_records_statements(self, debug_monitor):
        """Test statements and parameters are recorded per query."""
        debug_monitor.start_query("SELECT 1")
        debug_monitor.stop_query()
        debug_monitor.start_query("SELECT :a", {"a": 1})
        debug_monitor.stop_query()

        assert debug_monitor.get_logs() == ["SELECT 1", "SELECT :a"]
        assert debug_monitor.get_bound_params() == [None, {"a": 1}]

    def test_params_are_copied(self, debug_monitor):
        """Test later changes to the parameters do not leak into the log."""
        params = {"ids": [1, 2]}
        debug_monitor.start_query("SELECT :ids", params)
        params["ids"].append(3)

        assert debug_monitor.get_bound_params() == [{"ids": [1, 2]}]

    def test_timings_and_memory(self, debug_monitor):
        """Test start and stop each record a timing and a memory sample."""
        debug_monitor.start_query("SELECT 1")
        debug_monitor.stop_query()

        timings = debug_monitor.get_timings()
        memory = debug_monitor.get_memory_logs()

        assert len(timings) == 2
        assert timings[1] >= timings[0]
        assert len(memory) == 2
        assert all(sample > 0 for sample in memory)

    def test_durations(self, debug_monitor):
        """Test durations pair start and stop timings."""
        for sql in ("SELECT 1", "SELECT 2"):
            debug_monitor.start_query(sql)
            debug_monitor.stop_query()
        debug_monitor.start_query("SELECT 3")

        durations = debug_monitor.get_durations()

        assert len(durations) == 2
        assert all(duration >= 0 for duration in durations)

    def test_call_stack_points_at_caller(self, debug_monitor):
        """Test the recorded stack ends in the calling function."""
        debug_monitor.start_query("SELECT 1")

        stack = debug_monitor.get_call_stacks()[0]

        assert isinstance(stack, traceback.StackSummary)
        assert stack[-1].name == "test_call_stack_points_at_caller"


class TestLoggingMonitor:
    """Tests for LoggingMonitor."""

    def test_logs_statement(self):
        """Test statements are logged at debug level."""
        logger = Mock()
        monitor = LoggingMonitor(logger)

        monitor.start_query("SELECT :a", {"a": 1})
        monitor.stop_query()

        logger.debug.assert_called_once_with("Query Executed", sql="SELECT :a", params={"a": 1})

    def test_without_logger(self):
        """Test nothing happens until a logger is set."""
        monitor = LoggingMonitor()
        monitor.start_query("SELECT 1")

        logger = Mock()
        assert monitor.set_logger(logger) is monitor
        monitor.start_query("SELECT 2")

        logger.debug.assert_called_once_with("Query Executed", sql="SELECT 2", params={})

    def test_with_default_logger(self):
        """Test the default logger is created."""
        monitor = LoggingMonitor.with_default_logger()

        assert monitor.logger is not None


class TestChainedMonitor:
    """Tests for ChainedMonitor."""

    def test_forwards_in_order(self):
        """Test every monitor receives every call in registration order."""
        calls = []

        class Recording(QueryMonitor):
            def __init__(self, name):
                self.name = name

            def start_query(self, sql, bound_params=None):
                calls.append((self.name, "start", sql))

            def stop_query(self):
                calls.append((self.name, "stop"))

        chain = ChainedMonitor(Recording("a"))
        assert chain.add_monitor(Recording("b")) is chain

        chain.start_query("SELECT 1")
        chain.stop_query()

        assert calls == [
            ("a", "start", "SELECT 1"),
            ("b", "start", "SELECT 1"),
            ("a", "stop"),
            ("b", "stop"),
        ]

    def test_empty_chain(self):
        """Test a chain without monitors is a no-op."""
        chain = ChainedMonitor()
        chain.start_query("SELECT 1")
        chain.stop_query()

    def test_monitor_is_abstract(self):
        """Test QueryMonitor cannot be instantiated."""
        with pytest.raises(TypeError):
            QueryMonitor()
