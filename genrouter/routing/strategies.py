"""
genrouter - Selection Strategies

Pure ranking functions over candidate backends:
- LATENCY_FIRST: lowest rolling average latency first, unknown last
- COST_FIRST: cheapest default-model price first
- PRIORITY: configured priority hint ascending, unhinted last

Strategies never perform I/O and never mutate their input. Sorting is
stable, so ties keep registry order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..core.models import RoutingStrategy

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter


@dataclass
class ScoredCandidate:
    """A candidate with the value it was ranked by (lower is better)."""
    backend: str
    score: float


class BaseStrategy(ABC):
    """Base class for selection strategies."""

    name: RoutingStrategy

    @abstractmethod
    def score(self, adapter: "BaseAdapter") -> float:
        """Ranking value for one candidate. Lower ranks first."""
        pass

    def order(self, candidates: Sequence["BaseAdapter"]) -> List["BaseAdapter"]:
        """Return a new list of candidates in preference order."""
        return sorted(candidates, key=self.score)

    def explain(self, candidates: Sequence["BaseAdapter"]) -> List[ScoredCandidate]:
        """Ordered candidates with their scores, for logging."""
        return [
            ScoredCandidate(backend=adapter.backend.value, score=self.score(adapter))
            for adapter in self.order(candidates)
        ]


class LatencyStrategy(BaseStrategy):
    """Prefer the backend with the lowest recent average latency."""

    name = RoutingStrategy.LATENCY_FIRST

    def score(self, adapter: "BaseAdapter") -> float:
        # UNKNOWN_LATENCY is +inf, so untried backends sort last
        return adapter.average_latency()


class CostStrategy(BaseStrategy):
    """Prefer the backend whose default model is cheapest."""

    name = RoutingStrategy.COST_FIRST

    def score(self, adapter: "BaseAdapter") -> float:
        return adapter.cost_per_1k_tokens(adapter.default_model)


class PriorityStrategy(BaseStrategy):
    """Follow the configured priority hints (1 before 2)."""

    name = RoutingStrategy.PRIORITY

    def score(self, adapter: "BaseAdapter") -> float:
        priority = adapter.config.priority
        return float("inf") if priority is None else float(priority)


_STRATEGIES: Dict[RoutingStrategy, BaseStrategy] = {
    RoutingStrategy.LATENCY_FIRST: LatencyStrategy(),
    RoutingStrategy.COST_FIRST: CostStrategy(),
    RoutingStrategy.PRIORITY: PriorityStrategy(),
}


def get_strategy(strategy: RoutingStrategy) -> BaseStrategy:
    """Factory function to get a strategy instance."""
    try:
        return _STRATEGIES[RoutingStrategy(strategy)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown routing strategy: {strategy}")
