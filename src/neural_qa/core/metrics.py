"""
In-memory metrics for the query client and the /metrics endpoint (rough p50/p95).
Why: quick visibility without Prometheus.
"""

from collections import deque
from typing import Deque, Dict, List

MAX_LATENCY_SAMPLES = 1000


def _percentile(values: List[int], p: float) -> int:
    if not values:
        return 0
    idx = max(0, min(len(values) - 1, int(len(values) * p)))
    return sorted(values)[idx]


class _LatencyWindow:
    def __init__(self, maxlen: int = MAX_LATENCY_SAMPLES) -> None:
        self._latencies: Deque[int] = deque(maxlen=maxlen)

    def record_latency(self, ms: int) -> None:
        self._latencies.append(ms)

    def _latency_summary(self) -> Dict[str, int]:
        lat = list(self._latencies)
        return {"p50_ms": _percentile(lat, 0.50), "p95_ms": _percentile(lat, 0.95)}


class RequestMetrics(_LatencyWindow):
    """HTTP surface counters, fed by ObservabilityMiddleware."""

    def __init__(self) -> None:
        super().__init__()
        self.total_requests = 0
        self.total_errors = 0

    def increment_requests(self) -> None:
        self.total_requests += 1

    def increment_errors(self) -> None:
        self.total_errors += 1

    def snapshot(self) -> Dict[str, int]:
        return {
            "total_requests": self.total_requests,
            "total_errors": self.total_errors,
            **self._latency_summary(),
        }


class QAMetrics(_LatencyWindow):
    """Per-client counters for questions, retries, fallbacks and flags."""

    def __init__(self) -> None:
        super().__init__()
        self.total_queries = 0
        self.total_retries = 0
        self.total_fallbacks = 0
        self.total_flagged = 0

    def increment_queries(self) -> None:
        self.total_queries += 1

    def increment_retries(self) -> None:
        self.total_retries += 1

    def increment_fallbacks(self) -> None:
        self.total_fallbacks += 1

    def increment_flagged(self) -> None:
        self.total_flagged += 1

    def snapshot(self) -> Dict[str, int]:
        return {
            "total_queries": self.total_queries,
            "total_retries": self.total_retries,
            "total_fallbacks": self.total_fallbacks,
            "total_flagged": self.total_flagged,
            **self._latency_summary(),
        }

