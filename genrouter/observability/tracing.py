"""
genrouter - OpenTelemetry Tracing

Spans for routing decisions and backend attempts.

Usage:
    from genrouter.observability.tracing import setup_tracing, get_tracer

    # Setup at startup
    setup_tracing(service_name="genrouter", console_export=True)

    # Create spans
    tracer = get_tracer()
    with tracer.start_as_current_span("operation_name") as span:
        span.set_attribute("key", "value")

Without setup_tracing() the global OpenTelemetry tracer is used, which
is a no-op until an SDK provider is installed.
"""

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from .. import __version__


TRACER_NAME = "genrouter"


class TracingManager:
    """Owns a TracerProvider and the tracer derived from it."""

    def __init__(
        self,
        service_name: str = "genrouter",
        service_version: str = __version__,
        console_export: bool = False,
        exporter: Optional[SpanExporter] = None,
        set_global: bool = True,
    ):
        """
        Initialize tracing.

        Args:
            service_name: Name of the service
            service_version: Version of the service
            console_export: Whether to export spans to console (for debugging)
            exporter: Extra span exporter (e.g. in-memory for tests)
            set_global: Install the provider as the global tracer provider
        """
        resource = Resource.create({
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
            "deployment.environment": os.getenv("GENROUTER_ENV", "local"),
        })

        self.provider = TracerProvider(resource=resource)

        if console_export:
            self.provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        if exporter is not None:
            self.provider.add_span_processor(SimpleSpanProcessor(exporter))

        if set_global:
            trace.set_tracer_provider(self.provider)

        self.tracer = self.provider.get_tracer(TRACER_NAME, service_version)

    def get_tracer(self) -> trace.Tracer:
        return self.tracer

    def shutdown(self):
        """Shutdown the tracer provider."""
        self.provider.shutdown()


_tracing_instance: Optional[TracingManager] = None


def setup_tracing(
    service_name: str = "genrouter",
    console_export: bool = False,
    exporter: Optional[SpanExporter] = None,
) -> TracingManager:
    """
    Setup tracing. Call once at application startup.

    OTEL_CONSOLE_EXPORT=true forces console export; GENROUTER_ENV sets
    the deployment.environment resource attribute.
    """
    global _tracing_instance

    if os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true":
        console_export = True

    _tracing_instance = TracingManager(
        service_name=service_name,
        console_export=console_export,
        exporter=exporter,
    )
    return _tracing_instance


def get_tracer() -> trace.Tracer:
    """Get the configured tracer, or the global one if not set up."""
    if _tracing_instance is not None:
        return _tracing_instance.get_tracer()
    return trace.get_tracer(TRACER_NAME, __version__)


def record_exception(span: Span, exception: BaseException) -> None:
    """Mark a span as failed."""
    span.record_exception(exception)
    span.set_status(Status(StatusCode.ERROR, str(exception)))


@contextmanager
def trace_backend_call(
    tracer: trace.Tracer,
    backend: str,
    model: str,
    attempt: int,
    attributes: Optional[Dict[str, Any]] = None,
) -> Iterator[Span]:
    """
    Client span around a single backend attempt.

    Usage:
        with trace_backend_call(tracer, "openai", "gpt-4o", 1) as span:
            result = await adapter.generate(request)
    """
    span_attributes: Dict[str, Any] = {
        "genrouter.backend": backend,
        "genrouter.model": model,
        "genrouter.attempt": attempt,
    }
    if attributes:
        span_attributes.update(attributes)

    with tracer.start_as_current_span(
        "router.attempt",
        kind=SpanKind.CLIENT,
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        yield span
