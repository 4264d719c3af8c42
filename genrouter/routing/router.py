"""
genrouter - Router

Orchestrates a generation request across backends:
- Forced backend bypasses strategy selection and fallback
- Strategy ranks the available backends (latency, cost, priority)
- Each candidate runs through the retry executor
- On failure, advance to the next candidate (if fallback is enabled)
- Exhaustion raises one aggregate error naming every backend and reason

The Router holds no background tasks; it suspends only in backoff
sleeps and adapter network calls. Construct one per process and pass
it to callers.
"""

import asyncio
import math
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ..core.config import load_router_config, use_stub_adapters
from ..core.errors import AllBackendsFailedError, NoCandidatesError
from ..core.models import (
    BackendId,
    GenerationRequest,
    GenerationResult,
    RouterConfig,
    RoutingStrategy,
)
from ..observability.logging import bind_context, get_logger
from ..observability.metrics import MetricsCollector, get_metrics
from ..observability.tracing import get_tracer, record_exception
from .registry import AdapterFactory, ProviderRegistry
from .retry import AttemptRecord, RetryExecutor, Sleep
from .strategies import get_strategy

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter

logger = get_logger(__name__)


class Router:
    """
    Multi-backend generation router.

    Args:
        config: Process-wide configuration
        registry: Pre-built registry (built from config.backends if omitted)
        adapter_factory: Adapter constructor used when building the registry
        sleep: Backoff sleep (asyncio.sleep; injectable for tests)
        metrics: Prometheus collector (process-wide one if omitted)
        tracer: OpenTelemetry tracer (global one if omitted)
    """

    def __init__(
        self,
        config: RouterConfig,
        registry: Optional[ProviderRegistry] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        sleep: Sleep = asyncio.sleep,
        metrics: Optional[MetricsCollector] = None,
        tracer: Optional[trace.Tracer] = None
    ):
        self.config = config
        self.registry = registry or ProviderRegistry(
            config.backends,
            adapter_factory=adapter_factory,
            window_size=config.window_size,
        )
        self.metrics = metrics or get_metrics()
        self._tracer = tracer or get_tracer()
        self._executor = RetryExecutor(
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            sleep=sleep,
            tracer=self._tracer,
            on_attempt=self._on_attempt,
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **kwargs: Any) -> "Router":
        """
        Build a Router from environment variables.

        GENROUTER_USE_STUBS=true wires stub adapters for every backend.
        """
        config = load_router_config(env)
        if "adapter_factory" not in kwargs and "registry" not in kwargs and use_stub_adapters(env):
            from ..adapters import get_stub_adapter
            kwargs["adapter_factory"] = get_stub_adapter
        return cls(config, **kwargs)

    # ============================================================
    # Generation
    # ============================================================

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Route a request and return the first successful result.

        Raises:
            BackendUnavailableError: Forced backend is not configured
            NoCandidatesError: No backend is available
            AllBackendsFailedError: Every candidate failed (fallback enabled)
            BackendError: The only candidate failed (forced or fallback disabled)
        """
        request_id = f"gen_{uuid.uuid4().hex[:16]}"
        strategy = RoutingStrategy(request.strategy or self.config.default_strategy)
        forced = request.forced_backend

        with bind_context(request_id=request_id, strategy=strategy.value), \
                self.metrics.track_active_request(), \
                self._tracer.start_as_current_span(
                    "router.generate",
                    attributes={
                        "genrouter.request_id": request_id,
                        "genrouter.strategy": strategy.value,
                        "genrouter.forced_backend": forced.value if forced else "",
                    },
                    record_exception=False,
                    set_status_on_exception=False,
                ) as span:
            try:
                candidates = await self._select_candidates(request, strategy)
                result = await self._run_candidates(request, candidates, request_id)
            except Exception as e:
                reason = getattr(e, "code", None) or type(e).__name__
                self.metrics.record_failure(reason)
                record_exception(span, e)
                logger.warning(
                    "Generation failed",
                    reason=reason,
                    error=str(e),
                )
                raise

            span.set_attribute("genrouter.backend", result.backend.value)
            span.set_attribute("genrouter.fallback_used", result.fallback_used)
            span.set_status(Status(StatusCode.OK))
            return result

    async def _select_candidates(
        self,
        request: GenerationRequest,
        strategy: RoutingStrategy
    ) -> List["BaseAdapter"]:
        """Resolve the ordered candidate list for a request."""
        if request.forced_backend is not None:
            # Forcing always wins over strategy
            adapter = self.registry.require(request.forced_backend)
            logger.info("Routing decision", forced_backend=adapter.backend.value)
            return [adapter]

        candidates = self.registry.all()
        if self.config.check_availability and candidates:
            candidates = await self._filter_available(candidates)

        selector = get_strategy(strategy)
        ordered = selector.order(candidates)
        if not ordered:
            raise NoCandidatesError(strategy.value)

        self.metrics.record_routing_decision(strategy.value, ordered[0].backend.value)
        logger.info(
            "Routing decision",
            candidates=[
                {"backend": c.backend, "score": None if math.isinf(c.score) else round(c.score, 6)}
                for c in selector.explain(ordered)
            ],
        )
        return ordered

    async def _filter_available(self, candidates: List["BaseAdapter"]) -> List["BaseAdapter"]:
        """Probe candidates concurrently, keeping order."""
        results = await asyncio.gather(
            *(adapter.is_available() for adapter in candidates),
            return_exceptions=True,
        )
        available = []
        for adapter, ok in zip(candidates, results):
            if ok is True:
                available.append(adapter)
            else:
                logger.info("Backend unavailable, skipping", backend=adapter.backend.value)
        return available

    async def _run_candidates(
        self,
        request: GenerationRequest,
        candidates: List["BaseAdapter"],
        request_id: str
    ) -> GenerationResult:
        """Try each candidate in order until one succeeds."""
        fallback_enabled = self.config.enable_fallback and request.forced_backend is None
        max_attempts = request.max_retries if request.max_retries is not None else self.config.max_retries
        enable_retry = request.enable_retry if request.enable_retry is not None else True

        failures: List[Tuple[BackendId, Exception]] = []

        for index, adapter in enumerate(candidates):
            outcome = await self._executor.execute(
                adapter,
                request,
                max_attempts=max_attempts,
                enable_retry=enable_retry,
                timeout=request.timeout or adapter.attempt_timeout(self.config.default_timeout),
            )

            if outcome.result is not None:
                result = outcome.result
                result.fallback_used = index > 0
                self._record_usage(result)
                logger.info(
                    "Generation succeeded",
                    backend=result.backend.value,
                    model=result.model,
                    attempts=result.attempts,
                    latency_ms=round(result.latency_ms, 2),
                    fallback_used=result.fallback_used,
                )
                return result

            error = outcome.error
            failures.append((adapter.backend, error))

            if not fallback_enabled:
                raise error

            if index + 1 < len(candidates):
                next_backend = candidates[index + 1].backend.value
                self.metrics.record_fallback(adapter.backend.value, next_backend)
                logger.warning(
                    "Backend exhausted, falling back",
                    backend=adapter.backend.value,
                    next_backend=next_backend,
                    attempts=len(outcome.attempts),
                    error=str(error),
                )

        raise AllBackendsFailedError(failures, request_id=request_id)

    # ============================================================
    # Bookkeeping
    # ============================================================

    def _on_attempt(
        self,
        adapter: "BaseAdapter",
        record: AttemptRecord,
        result: Optional[GenerationResult]
    ) -> None:
        """Record one attempt on the backend's tracker and in metrics."""
        if self.config.track_latency:
            adapter.record_outcome(
                latency_ms=record.latency_ms,
                model=record.model,
                success=record.success,
                error=record.error,
            )

        self.metrics.record_attempt(
            backend=record.backend,
            model=record.model,
            success=record.success,
            duration_seconds=record.latency_ms / 1000,
        )
        if record.attempt > 1:
            self.metrics.record_retry(record.backend)

        if not record.success:
            logger.warning(
                "Attempt failed",
                backend=record.backend,
                attempt=record.attempt,
                error=record.error,
                error_code=record.error_code,
                latency_ms=round(record.latency_ms, 2),
            )

    def _record_usage(self, result: GenerationResult) -> None:
        backend = result.backend.value
        self.metrics.record_tokens(
            backend=backend,
            model=result.model,
            input_tokens=result.usage.prompt_tokens,
            output_tokens=result.usage.completion_tokens,
        )
        self.metrics.record_cost(backend, result.model, result.cost_usd)

    # ============================================================
    # Health & stats
    # ============================================================

    async def check_all_health(self) -> Dict[str, bool]:
        """Probe every backend concurrently."""
        adapters = self.registry.all()
        results = await asyncio.gather(
            *(adapter.is_available() for adapter in adapters),
            return_exceptions=True,
        )
        return {
            adapter.backend.value: result is True
            for adapter, result in zip(adapters, results)
        }

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Rolling-window statistics for every backend."""
        result = {}

        for adapter in self.registry.all():
            snapshot = adapter.tracker.snapshot()
            latency = snapshot.latency
            result[adapter.backend.value] = {
                "model": adapter.default_model,
                "records": snapshot.record_count,
                "successful": snapshot.successful,
                "failed": snapshot.failed,
                "error_rate": snapshot.error_rate,
                "avg_latency_ms": None if math.isinf(latency.avg_ms) else round(latency.avg_ms, 2),
                "p95_latency_ms": round(latency.p95_ms, 2),
                "p99_latency_ms": round(latency.p99_ms, 2),
                "cost_per_1k_tokens": adapter.cost_per_1k_tokens(adapter.default_model),
                "degraded": adapter.tracker.is_degraded(),
                "last_error": snapshot.last_error,
            }

        return result

    async def close(self) -> None:
        """Close every backend adapter."""
        await self.registry.close()
