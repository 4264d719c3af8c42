"""
genrouter - Performance Tracking

Rolling history of attempt outcomes for a single backend.

- Fixed-capacity window (FIFO eviction, O(1) append)
- Average latency over successful attempts only
- Error rate and latency percentiles for diagnostics

Each backend adapter owns its own tracker, so concurrent updates to
different backends never contend on the same lock.
"""

import statistics
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, List, Optional

from ..core.models import UNKNOWN_LATENCY, BackendId, OutcomeRecord


DEFAULT_WINDOW_SIZE = 100


@dataclass
class LatencyStats:
    """Latency statistics over successful records."""
    avg_ms: float = UNKNOWN_LATENCY
    min_ms: float = 0.0
    max_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    sample_count: int = 0


@dataclass
class TrackerSnapshot:
    """Point-in-time view of a tracker's window."""
    backend: str
    timestamp: float
    window_size: int
    record_count: int
    successful: int
    failed: int
    error_rate: float
    latency: LatencyStats
    last_error: Optional[str] = None
    last_success_time: Optional[float] = None
    last_failure_time: Optional[float] = None


def _percentile(data: List[float], p: float) -> float:
    """Linear-interpolated percentile of sorted data."""
    if not data:
        return 0.0
    k = (len(data) - 1) * p / 100
    f = int(k)
    c = f + 1 if f + 1 < len(data) else f
    return data[f] + (data[c] - data[f]) * (k - f)


class PerformanceTracker:
    """
    Tracks recent outcomes for a single backend.

    Records live in a deque bounded at `window_size`; once full, the
    oldest record is dropped as the new one is appended.
    """

    def __init__(self, backend: BackendId, window_size: int = DEFAULT_WINDOW_SIZE):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.backend = backend
        self.window_size = window_size
        self._lock = Lock()
        self._records: Deque[OutcomeRecord] = deque(maxlen=window_size)

    def record(self, outcome: OutcomeRecord) -> None:
        """Append one outcome, evicting the oldest when full."""
        with self._lock:
            self._records.append(outcome)

    def record_success(self, latency_ms: float, model: str) -> OutcomeRecord:
        """Record a successful attempt."""
        outcome = OutcomeRecord(
            backend=self.backend,
            latency_ms=latency_ms,
            model=model,
            success=True,
        )
        self.record(outcome)
        return outcome

    def record_failure(self, latency_ms: float, model: str, error: str = "") -> OutcomeRecord:
        """Record a failed attempt."""
        outcome = OutcomeRecord(
            backend=self.backend,
            latency_ms=latency_ms,
            model=model,
            success=False,
            error=error or None,
        )
        self.record(outcome)
        return outcome

    def average_latency(self) -> float:
        """
        Mean latency (ms) of successful records in the window.

        Returns UNKNOWN_LATENCY when there is no successful history.
        """
        with self._lock:
            latencies = [r.latency_ms for r in self._records if r.success]
        if not latencies:
            return UNKNOWN_LATENCY
        return statistics.fmean(latencies)

    def error_rate(self) -> float:
        """Fraction of failed records in the window."""
        with self._lock:
            total = len(self._records)
            failed = sum(1 for r in self._records if not r.success)
        if total == 0:
            return 0.0
        return failed / total

    def is_degraded(self, min_records: int = 5, max_error_rate: float = 0.5) -> bool:
        """
        True when enough history exists and most of it failed.

        Informational only; strategies do not exclude degraded backends.
        """
        with self._lock:
            total = len(self._records)
            failed = sum(1 for r in self._records if not r.success)
        return total >= min_records and failed / total > max_error_rate

    def records(self) -> List[OutcomeRecord]:
        """Copy of the window, oldest first."""
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        """Drop all recorded history."""
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def snapshot(self) -> TrackerSnapshot:
        """Get current window statistics."""
        records = self.records()

        successes = [r for r in records if r.success]
        failures = [r for r in records if not r.success]

        latency = LatencyStats()
        if successes:
            sorted_latencies = sorted(r.latency_ms for r in successes)
            latency = LatencyStats(
                avg_ms=statistics.fmean(sorted_latencies),
                min_ms=sorted_latencies[0],
                max_ms=sorted_latencies[-1],
                p50_ms=_percentile(sorted_latencies, 50),
                p95_ms=_percentile(sorted_latencies, 95),
                p99_ms=_percentile(sorted_latencies, 99),
                sample_count=len(sorted_latencies),
            )

        return TrackerSnapshot(
            backend=self.backend.value,
            timestamp=time.time(),
            window_size=self.window_size,
            record_count=len(records),
            successful=len(successes),
            failed=len(failures),
            error_rate=round(len(failures) / len(records), 4) if records else 0.0,
            latency=latency,
            last_error=failures[-1].error if failures else None,
            last_success_time=successes[-1].timestamp if successes else None,
            last_failure_time=failures[-1].timestamp if failures else None,
        )
