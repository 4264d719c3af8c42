"""
genrouter - Backend Adapter Base

Abstract base class for generation backends.
Each backend (OpenAI-compatible, Anthropic, stub) implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.models import (
    BackendConfig,
    BackendId,
    GenerationRequest,
    GenerationResult,
    OutcomeRecord,
    Usage,
)
from ..routing.tracker import DEFAULT_WINDOW_SIZE, PerformanceTracker


class BaseAdapter(ABC):
    """
    Abstract base class for backend adapters.

    Each adapter must implement:
    - generate: Produce a completion, raising a BackendError on any failure
      (empty content included)
    - _probe: Lightweight liveness check used by is_available

    The base class provides:
    1. The rolling performance window (one tracker per adapter instance)
    2. Static cost lookup from COST_PER_1K_TOKENS
    3. Model resolution against the configured default
    """

    # Blended USD price per 1K tokens, keyed by model name
    COST_PER_1K_TOKENS: Dict[str, float] = {}

    # Mid-tier price for models missing from the table; never free
    UNKNOWN_MODEL_COST_PER_1K = 0.004

    # Connect bound only; the router's per-attempt timeout bounds the whole call
    CONNECT_TIMEOUT = 10.0

    def __init__(self, config: BackendConfig, window_size: int = DEFAULT_WINDOW_SIZE):
        self.config = config
        self.backend: BackendId = config.backend
        self._tracker = PerformanceTracker(config.backend, window_size)

    @property
    def tracker(self) -> PerformanceTracker:
        return self._tracker

    @property
    def default_model(self) -> str:
        return self.config.default_model

    # ============================================================
    # Capability contract
    # ============================================================

    async def is_available(self) -> bool:
        """
        Check whether this backend can take traffic.

        Never raises: any probe failure resolves to False.
        """
        try:
            return bool(await self._probe())
        except Exception:
            return False

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate a completion.

        Args:
            request: Unified generation request

        Returns:
            Result for this single attempt

        Raises:
            BackendError: On any failure, including empty content
        """
        pass

    def average_latency(self) -> float:
        """Mean latency (ms) of recent successes, UNKNOWN_LATENCY if none."""
        return self._tracker.average_latency()

    def cost_per_1k_tokens(self, model: Optional[str] = None) -> float:
        """
        Static price lookup.

        Unknown models are priced as the configured default model, and an
        unpriced default model at UNKNOWN_MODEL_COST_PER_1K.
        """
        if model and model in self.COST_PER_1K_TOKENS:
            return self.COST_PER_1K_TOKENS[model]
        return self.COST_PER_1K_TOKENS.get(self.default_model, self.UNKNOWN_MODEL_COST_PER_1K)

    # ============================================================
    # Helpers
    # ============================================================

    async def _probe(self) -> bool:
        """Default probe: a backend is usable when it has a credential."""
        return bool(self.config.enabled and self.config.api_key)

    def resolve_model(self, request: GenerationRequest) -> str:
        return request.model or self.default_model

    def calculate_cost(self, model: str, usage: Usage) -> float:
        """Calculate cost for a request."""
        return round(usage.total_tokens / 1000 * self.cost_per_1k_tokens(model), 8)

    def record_outcome(
        self,
        latency_ms: float,
        model: str,
        success: bool,
        error: Optional[str] = None
    ) -> OutcomeRecord:
        """Append one attempt to this backend's rolling window."""
        outcome = OutcomeRecord(
            backend=self.backend,
            latency_ms=latency_ms,
            model=model,
            success=success,
            error=error,
        )
        self._tracker.record(outcome)
        return outcome

    def _normalize_messages(self, request: GenerationRequest) -> List[Dict[str, Any]]:
        """
        Convert unified messages to the backend wire format.
        Override in subclass if needed.
        """
        return [message.to_dict() for message in request.messages]

    def attempt_timeout(self, default: Optional[float] = None) -> Optional[float]:
        """Per-attempt timeout in seconds, preferring the backend override."""
        return self.config.timeout if self.config.timeout is not None else default

    async def close(self) -> None:
        """Release any network resources."""
        return

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backend={self.backend.value!r}, model={self.default_model!r})"
