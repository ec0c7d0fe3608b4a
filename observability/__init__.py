"""
Tessera - Observability Package

Structured logging and distributed tracing for Tessera services.

Components:
- tracing: OpenTelemetry tracer provider setup
- logging: Structlog integration with trace context propagation

Usage:
    from observability import setup_observability, get_tracer, get_logger

    setup_observability(service_name="tessera")

    tracer = get_tracer(__name__)
    logger = get_logger(__name__)
"""
from observability.logging import (
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
    unbind_context,
)
from observability.tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    get_tracer_provider,
    setup_tracing,
    shutdown_tracing,
)

__all__ = [
    # Tracing
    "setup_tracing",
    "get_tracer",
    "get_tracer_provider",
    "create_span",
    "TracingConfig",
    "shutdown_tracing",
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LogContext",
    "bind_context",
    "unbind_context",
    "clear_context",
    "shutdown_logging",
    # Combined setup
    "setup_observability",
    "shutdown_observability",
]


def setup_observability(
    service_name: str = "tessera",
    enabled: bool = True,
    sample_rate: float = 1.0,
    log_level: str = "INFO",
    json_logs: bool = True,
    environment: str = "development",
    console_export: bool = False,
) -> None:
    """
    Initialize tracing and logging for a Tessera process.

    Args:
        service_name: Name of the service for telemetry
        enabled: Enable/disable tracing
        sample_rate: Trace sampling rate (0.0-1.0)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render logs as JSON instead of console lines
        environment: Deployment environment
        console_export: Print finished spans to stdout
    """
    setup_tracing(TracingConfig(
        service_name=service_name,
        enabled=enabled,
        sample_rate=sample_rate,
        environment=environment,
        console_export=console_export,
    ))

    setup_logging(LoggingConfig(
        service_name=service_name,
        level=log_level,
        json_format=json_logs,
        environment=environment,
    ))


def shutdown_observability() -> None:
    """Flush and reset tracing and logging."""
    shutdown_tracing()
    shutdown_logging()
