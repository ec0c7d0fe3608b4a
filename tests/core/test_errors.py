"""
Tests for core/errors.py - Unified Error Handling.
"""
import pytest
from opentelemetry.sdk.trace import TracerProvider

from core.errors import (
    ConfigError,
    ContainerError,
    DatabaseError,
    ErrorContext,
    ErrorSeverity,
    RegistryFormatError,
    TesseraError,
    classify_error,
)
from di import KeyNotFoundError
from security import DecryptionError, StrategyNotFoundError


class TestTesseraError:
    """Tests for the base error."""

    def test_defaults(self):
        """Test default attributes."""
        error = TesseraError("Something failed")

        assert error.message == "Something failed"
        assert error.severity == ErrorSeverity.ERROR
        assert error.recoverable is False
        assert error.suggestions == []
        assert error.context is None
        assert str(error) == "[TESSERA_ERROR] Something failed"

    def test_str_with_context_and_cause(self):
        """Test the component and cause are rendered."""
        cause = ValueError("bad")
        error = TesseraError(
            "Wrapped",
            context=ErrorContext(operation="load", component="registry"),
            cause=cause,
        )

        assert str(error) == "[TESSERA_ERROR] Wrapped (component: registry) [caused by: bad]"

    def test_to_dict(self):
        """Test structured output."""
        error = ConfigError(
            "Invalid value",
            config_key="CRYPT_CIPHER",
            actual_value="rot13",
            suggestions=["Use fernet"],
        )

        data = error.to_dict()

        assert data["error_code"] == "CONFIG_ERROR"
        assert data["severity"] == "critical"
        assert data["suggestions"] == ["Use fernet"]
        assert data["context"] is None
        assert data["cause"] is None
        assert error.config_key == "CRYPT_CIPHER"
        assert error.actual_value == "rot13"

    def test_with_context(self):
        """Test context metadata is added."""
        error = TesseraError("Oops").with_context(key="db")

        assert error.context.metadata == {"key": "db"}

        error.with_context(attempt=2)
        assert error.context.metadata == {"key": "db", "attempt": 2}

    def test_severity_override(self):
        """Test severity can be given explicitly."""
        assert TesseraError("x", severity=ErrorSeverity.INFO).severity == ErrorSeverity.INFO


class TestHierarchy:
    """Tests for builtin compatibility of leaf errors."""

    def test_builtin_bases(self):
        """Test errors can be caught as builtin exceptions."""
        assert isinstance(ConfigError("x"), ValueError)
        assert isinstance(DatabaseError("x"), RuntimeError)
        assert isinstance(RegistryFormatError("x"), ValueError)
        assert isinstance(KeyNotFoundError("k"), KeyError)
        assert isinstance(StrategyNotFoundError("s"), LookupError)

    def test_all_are_tessera_errors(self):
        """Test every package error shares the base class."""
        for error in (KeyNotFoundError("k"), DecryptionError("d"), StrategyNotFoundError("s")):
            assert isinstance(error, TesseraError)

    def test_default_severities(self):
        """Test per-class default severities."""
        assert RegistryFormatError("x").severity == ErrorSeverity.WARNING
        assert ConfigError("x").severity == ErrorSeverity.CRITICAL
        assert DecryptionError("x").severity == ErrorSeverity.WARNING


class TestClassifyError:
    """Tests for classify_error."""

    def test_tessera_error_unchanged(self):
        """Test Tessera errors are returned as-is."""
        error = ContainerError("x")

        assert classify_error(error) is error

    @pytest.mark.parametrize("error,expected", [
        (ConnectionError("refused"), DatabaseError),
        (KeyError("k"), ContainerError),
        (UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid"), RegistryFormatError),
    ])
    def test_mapped_errors(self, error, expected):
        """Test builtin errors map to their Tessera counterparts."""
        classified = classify_error(error)

        assert isinstance(classified, expected)
        assert classified.cause is error

    def test_unmapped_error(self):
        """Test other errors become generic Tessera errors."""
        classified = classify_error(ZeroDivisionError("division by zero"))

        assert type(classified) is TesseraError
        assert classified.message == "division by zero"


class TestSpanRecording:
    """Tests for recording errors on the active span."""

    def test_error_recorded_on_span(self):
        """Test the active span is marked as failed."""
        tracer = TracerProvider().get_tracer(__name__)

        with tracer.start_as_current_span("operation") as span:
            TesseraError("Failure", suggestions=["Retry"])

            assert not span.status.is_ok
            assert span.attributes["error.code"] == "TESSERA_ERROR"
            assert span.attributes["error.severity"] == "error"
            assert len(span.events) == 1

    def test_context_from_current_span(self):
        """Test trace identifiers are captured from the active span."""
        tracer = TracerProvider().get_tracer(__name__)

        with tracer.start_as_current_span("operation") as span:
            context = ErrorContext.from_current_span("load", "registry")

            assert context.trace_id == format(span.get_span_context().trace_id, "032x")
            assert context.span_id == format(span.get_span_context().span_id, "016x")

    def test_context_without_span(self):
        """Test no identifiers are captured outside a span."""
        context = ErrorContext.from_current_span("load", "registry")

        assert context.trace_id is None
        assert context.span_id is None
