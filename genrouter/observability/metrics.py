"""
genrouter - Prometheus Metrics

Metrics exposed:
- genrouter_attempts_total: Counter of backend attempts by backend, model, outcome
- genrouter_attempt_duration_seconds: Histogram of attempt latency
- genrouter_retries_total: Counter of retries within a backend
- genrouter_fallbacks_total: Counter of advances to the next candidate
- genrouter_routing_decisions_total: Counter of first-choice backends per strategy
- genrouter_tokens_total: Counter of tokens used (input/output)
- genrouter_cost_usd_total: Counter of estimated cost in USD
- genrouter_requests_failed_total: Counter of terminal failures by reason
- genrouter_active_requests: Gauge of in-flight generate() calls

Usage:
    from genrouter.observability.metrics import get_metrics, metrics_text

    metrics = get_metrics()
    metrics.record_attempt(backend="openai", model="gpt-4o", success=True, duration_seconds=1.5)

    # Prometheus exposition for a /metrics handler
    body = metrics_text()
"""

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    REGISTRY,
    generate_latest,
)

from .. import __version__


class MetricsCollector:
    """
    Central metrics collector using the Prometheus client.

    Pass a fresh CollectorRegistry to isolate metrics (tests); the
    process-wide collector lives on the default REGISTRY.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.info = Info(
            "genrouter",
            "genrouter build information",
            registry=registry,
        )
        self.info.info({"version": __version__})

        self.attempts_total = Counter(
            "genrouter_attempts_total",
            "Backend attempts",
            labelnames=["backend", "model", "outcome"],  # outcome = success/failure
            registry=registry,
        )

        # Generation calls typically range from 0.1s to 60s+
        self.attempt_duration = Histogram(
            "genrouter_attempt_duration_seconds",
            "Backend attempt duration in seconds",
            labelnames=["backend"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0, 100.0, float("inf")),
            registry=registry,
        )

        self.retries_total = Counter(
            "genrouter_retries_total",
            "Retries within a single backend",
            labelnames=["backend"],
            registry=registry,
        )

        self.fallbacks_total = Counter(
            "genrouter_fallbacks_total",
            "Advances from a failed backend to the next candidate",
            labelnames=["from_backend", "to_backend"],
            registry=registry,
        )

        self.routing_decisions = Counter(
            "genrouter_routing_decisions_total",
            "First-choice backend per routing decision",
            labelnames=["strategy", "backend"],
            registry=registry,
        )

        self.tokens_total = Counter(
            "genrouter_tokens_total",
            "Total tokens used",
            labelnames=["backend", "model", "type"],  # type = input/output
            registry=registry,
        )

        self.cost_total = Counter(
            "genrouter_cost_usd_total",
            "Estimated cost in USD",
            labelnames=["backend", "model"],
            registry=registry,
        )

        self.requests_failed = Counter(
            "genrouter_requests_failed_total",
            "generate() calls that ended in an error",
            labelnames=["reason"],
            registry=registry,
        )

        self.active_requests = Gauge(
            "genrouter_active_requests",
            "Number of in-flight generate() calls",
            registry=registry,
        )

    def record_attempt(
        self,
        backend: str,
        model: str,
        success: bool,
        duration_seconds: float,
    ):
        """Record one backend attempt."""
        self.attempts_total.labels(
            backend=backend,
            model=model,
            outcome="success" if success else "failure",
        ).inc()
        self.attempt_duration.labels(backend=backend).observe(duration_seconds)

    def record_retry(self, backend: str):
        self.retries_total.labels(backend=backend).inc()

    def record_fallback(self, from_backend: str, to_backend: str):
        """Record an advance to the next candidate."""
        self.fallbacks_total.labels(
            from_backend=from_backend,
            to_backend=to_backend,
        ).inc()

    def record_routing_decision(self, strategy: str, backend: str):
        """Record a routing decision."""
        self.routing_decisions.labels(strategy=strategy, backend=backend).inc()

    def record_tokens(
        self,
        backend: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
    ):
        """Record token usage."""
        self.tokens_total.labels(backend=backend, model=model, type="input").inc(input_tokens)
        self.tokens_total.labels(backend=backend, model=model, type="output").inc(output_tokens)

    def record_cost(self, backend: str, model: str, cost_usd: float):
        self.cost_total.labels(backend=backend, model=model).inc(cost_usd)

    def record_failure(self, reason: str):
        """Record a terminal generate() failure."""
        self.requests_failed.labels(reason=reason).inc()

    def track_active_request(self) -> "ActiveRequestTracker":
        """Context manager to track in-flight requests."""
        return ActiveRequestTracker(self)


class ActiveRequestTracker:
    """Context manager for tracking active requests."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def __enter__(self):
        self.collector.active_requests.inc()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.collector.active_requests.dec()


# Module-level functions for convenience
_metrics_instance: Optional[MetricsCollector] = None


def setup_metrics(registry: CollectorRegistry = REGISTRY) -> MetricsCollector:
    """
    Setup metrics collection.

    Safe to call multiple times with the same registry - returns
    the existing instance.
    """
    global _metrics_instance

    if _metrics_instance is not None and _metrics_instance.registry is registry:
        return _metrics_instance

    _metrics_instance = MetricsCollector(registry)
    return _metrics_instance


def get_metrics() -> MetricsCollector:
    """Get the process-wide metrics collector, creating it on first use."""
    if _metrics_instance is None:
        return setup_metrics()
    return _metrics_instance


def metrics_text(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of the given (or default) registry."""
    return generate_latest(registry or REGISTRY)
