"""
genrouter - Retry Executor

Runs one request against one backend up to N times:
- No sleep before the first attempt
- Before attempt k+1 (k >= 1) sleep min(base_delay * 2**k, max_delay)
- Each attempt bounded by a per-attempt timeout
- Empty content counts as a failure

Every Exception from an attempt is retried; the last one is surfaced.
asyncio.CancelledError is never caught, so cancelling the caller takes
effect at the next suspension point (backoff sleep or network call).
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from opentelemetry import trace

from ..core.errors import BackendTimeoutError, EmptyResponseError
from ..core.models import GenerationRequest, GenerationResult
from ..observability.tracing import get_tracer, record_exception, trace_backend_call

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter


DEFAULT_BASE_DELAY = 1.0   # seconds
DEFAULT_MAX_DELAY = 10.0   # seconds

Sleep = Callable[[float], Awaitable[None]]


def calculate_backoff(
    completed_attempts: int,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY
) -> float:
    """
    Delay before the next attempt, given how many have already run.

    Sequence with base 1s: 0, 2, 4, 8, 10, 10, ...
    """
    if completed_attempts < 1:
        return 0.0
    return min(base_delay * (2 ** completed_attempts), max_delay)


@dataclass
class AttemptRecord:
    """One attempt against one backend."""
    attempt: int
    backend: str
    model: str
    latency_ms: float
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    delay_before: float = 0.0  # seconds slept before this attempt


@dataclass
class RetryOutcome:
    """
    Result of running the retry loop on one backend.

    Exactly one of result / error is set. `attempts` keeps every
    attempt, including the intermediate failures.
    """
    backend: str
    result: Optional[GenerationResult] = None
    error: Optional[Exception] = None
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    @property
    def errors(self) -> List[str]:
        return [a.error for a in self.attempts if a.error]


AttemptCallback = Callable[["BaseAdapter", AttemptRecord, Optional[GenerationResult]], None]


class RetryExecutor:
    """
    Bounded retry with exponential backoff for a single backend.

    Args:
        base_delay: Backoff base in seconds
        max_delay: Backoff cap in seconds
        sleep: Awaitable sleep (asyncio.sleep; injectable for tests)
        tracer: OpenTelemetry tracer for per-attempt spans
        on_attempt: Called after every attempt with the adapter, the
            attempt record and the result (None on failure)
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Sleep = asyncio.sleep,
        tracer: Optional[trace.Tracer] = None,
        on_attempt: Optional[AttemptCallback] = None
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep
        self._tracer = tracer or get_tracer()
        self._on_attempt = on_attempt

    async def execute(
        self,
        adapter: "BaseAdapter",
        request: GenerationRequest,
        max_attempts: int = 3,
        enable_retry: bool = True,
        timeout: Optional[float] = None
    ) -> RetryOutcome:
        """Attempt the request until success or the attempt limit."""
        allowed = max(1, max_attempts) if enable_retry else 1
        backend = adapter.backend.value
        model = adapter.resolve_model(request)
        outcome = RetryOutcome(backend=backend)

        for attempt in range(1, allowed + 1):
            delay = calculate_backoff(attempt - 1, self.base_delay, self.max_delay)
            if attempt > 1:
                await self._sleep(delay)

            with trace_backend_call(self._tracer, backend, model, attempt) as span:
                start = time.perf_counter()
                try:
                    result = await self._attempt(adapter, request, model, timeout)
                except Exception as e:
                    latency_ms = (time.perf_counter() - start) * 1000
                    record_exception(span, e)
                    record = AttemptRecord(
                        attempt=attempt,
                        backend=backend,
                        model=model,
                        latency_ms=latency_ms,
                        success=False,
                        error=str(e) or type(e).__name__,
                        error_code=getattr(e, "code", None) or type(e).__name__,
                        delay_before=delay,
                    )
                    outcome.attempts.append(record)
                    outcome.error = e
                    self._notify(adapter, record, None)
                    continue

                latency_ms = (time.perf_counter() - start) * 1000
                span.set_attribute("genrouter.latency_ms", latency_ms)

            # Latency and usage describe the winning attempt only
            result.latency_ms = latency_ms
            result.attempts = attempt
            record = AttemptRecord(
                attempt=attempt,
                backend=backend,
                model=result.model or model,
                latency_ms=latency_ms,
                success=True,
                delay_before=delay,
            )
            outcome.attempts.append(record)
            outcome.result = result
            outcome.error = None
            self._notify(adapter, record, result)
            return outcome

        return outcome

    async def _attempt(
        self,
        adapter: "BaseAdapter",
        request: GenerationRequest,
        model: str,
        timeout: Optional[float]
    ) -> GenerationResult:
        try:
            if timeout:
                result = await asyncio.wait_for(adapter.generate(request), timeout)
            else:
                result = await adapter.generate(request)
        except asyncio.TimeoutError:
            raise BackendTimeoutError(adapter.backend, timeout)

        if result is None or not (result.content or "").strip():
            raise EmptyResponseError(adapter.backend, model)
        return result

    def _notify(
        self,
        adapter: "BaseAdapter",
        record: AttemptRecord,
        result: Optional[GenerationResult]
    ) -> None:
        if self._on_attempt is not None:
            self._on_attempt(adapter, record, result)
