"""
genrouter Routing Module

Strategy selection, bounded retry and multi-backend fallback.
"""

from .tracker import DEFAULT_WINDOW_SIZE, LatencyStats, PerformanceTracker, TrackerSnapshot
from .registry import ProviderRegistry
from .strategies import (
    BaseStrategy,
    CostStrategy,
    LatencyStrategy,
    PriorityStrategy,
    ScoredCandidate,
    get_strategy,
)
from .retry import AttemptRecord, RetryExecutor, RetryOutcome, calculate_backoff
from .router import Router

__all__ = [
    # Tracking
    "DEFAULT_WINDOW_SIZE",
    "LatencyStats",
    "PerformanceTracker",
    "TrackerSnapshot",
    # Registry
    "ProviderRegistry",
    # Strategies
    "BaseStrategy",
    "CostStrategy",
    "LatencyStrategy",
    "PriorityStrategy",
    "ScoredCandidate",
    "get_strategy",
    # Retry
    "AttemptRecord",
    "RetryExecutor",
    "RetryOutcome",
    "calculate_backoff",
    # Router
    "Router",
]
