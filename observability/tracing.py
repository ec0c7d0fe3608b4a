"""
Tessera - OpenTelemetry Tracing

Sets up the OpenTelemetry SDK tracer provider used by the authentication
chain, the event dispatcher and the error hierarchy.

Usage:
    from observability.tracing import setup_tracing, get_tracer

    setup_tracing(TracingConfig(console_export=True))

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("auth.authenticate"):
        ...
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_OFF, ALWAYS_ON, ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode

# Global state
_tracer_provider: Optional[TracerProvider] = None
_initialized: bool = False


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "tessera"
    service_version: str = "1.0.0"
    enabled: bool = field(
        default_factory=lambda: os.getenv("OTEL_TRACING_ENABLED", "true").lower() == "true"
    )
    sample_rate: float = field(
        default_factory=lambda: float(os.getenv("OTEL_SAMPLE_RATE", "1.0"))
    )
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    extra_attributes: Dict[str, str] = field(default_factory=dict)


def setup_tracing(config: Optional[TracingConfig] = None) -> trace.TracerProvider:
    """
    Configure the global OpenTelemetry tracer provider.

    Args:
        config: Tracing configuration. Uses defaults if not provided.

    Returns:
        The configured tracer provider
    """
    global _tracer_provider, _initialized

    if _initialized and _tracer_provider:
        return _tracer_provider

    config = config or TracingConfig()

    if not config.enabled:
        _initialized = True
        return trace.NoOpTracerProvider()

    resource = Resource.create({
        SERVICE_NAME: config.service_name,
        SERVICE_VERSION: config.service_version,
        "deployment.environment": config.environment,
        **config.extra_attributes,
    })

    if config.sample_rate <= 0.0:
        sampler = ALWAYS_OFF
    elif config.sample_rate >= 1.0:
        sampler = ALWAYS_ON
    else:
        sampler = ParentBased(root=TraceIdRatioBased(config.sample_rate))

    _tracer_provider = TracerProvider(resource=resource, sampler=sampler)

    if config.console_export:
        _tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)
    _initialized = True

    return _tracer_provider


def get_tracer_provider() -> trace.TracerProvider:
    """Get the global tracer provider, initializing if necessary."""
    if not _initialized:
        setup_tracing()
    return _tracer_provider or trace.get_tracer_provider()


def get_tracer(name: str, version: str = "1.0.0") -> trace.Tracer:
    """
    Get a tracer instance for manual instrumentation.

    Example:
        >>> tracer = get_tracer(__name__)
        >>> with tracer.start_as_current_span("events.dispatch") as span:
        ...     span.set_attribute("event.name", "onAfterConnect")
    """
    return get_tracer_provider().get_tracer(name, version)


def shutdown_tracing() -> None:
    """Flush pending spans and reset the module state."""
    global _tracer_provider, _initialized
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    _initialized = False
    _tracer_provider = None


@contextmanager
def create_span(
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    tracer_name: str = "tessera",
) -> Iterator[Span]:
    """
    Context manager creating a span that records escaping exceptions.

    Example:
        >>> with create_span("registry.load", {"registry.format": "yaml"}):
        ...     registry.load_file(path, "yaml")
    """
    tracer = get_tracer(tracer_name)
    with tracer.start_as_current_span(name, record_exception=False) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
