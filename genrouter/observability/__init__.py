"""
genrouter - Observability Module

- Prometheus metrics (Counter, Histogram, Gauge)
- OpenTelemetry tracing
- Structured JSON logging with context injection

Usage:
    from genrouter.observability import get_logger, get_metrics, get_tracer

    logger = get_logger(__name__)
    tracer = get_tracer()
    metrics = get_metrics()
"""

from .metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
    metrics_text,
)
from .tracing import (
    TracingManager,
    get_tracer,
    setup_tracing,
)
from .logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    bind_context,
    get_logger,
    setup_logging,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "setup_metrics",
    "metrics_text",
    # Tracing
    "TracingManager",
    "get_tracer",
    "setup_tracing",
    # Logging
    "JSONFormatter",
    "LogContext",
    "StructuredLogger",
    "bind_context",
    "get_logger",
    "setup_logging",
]
