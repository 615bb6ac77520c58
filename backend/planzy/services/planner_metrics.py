from __future__ import annotations

from collections import Counter, deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from statistics import mean
from threading import Lock
from typing import Deque

from planzy.core.settings import settings


@dataclass
class SynthesisEntry:
    trace_id: str
    destination: str | None
    places: int
    latency_ms: float
    success: bool
    error: str | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PlannerMetrics:
    """In-memory collector tracking vacation synthesis runs."""

    def __init__(self, history_limit: int = 100) -> None:
        self._history: Deque[SynthesisEntry] = deque(maxlen=max(history_limit, 1))
        self._calls = 0
        self._failures = 0
        self._latencies_ms: Deque[float] = deque(maxlen=500)
        self._errors: Counter[str] = Counter()
        self._destinations: Counter[str] = Counter()
        self._lock = Lock()

    def record(
        self,
        *,
        trace_id: str,
        destination: str | None,
        places: int,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        with self._lock:
            self._calls += 1
            if not success:
                self._failures += 1
                self._errors[error or "unknown"] += 1
            if destination:
                self._destinations[destination] += 1
            self._latencies_ms.append(latency_ms)
            self._history.append(
                SynthesisEntry(
                    trace_id=trace_id,
                    destination=destination,
                    places=places,
                    latency_ms=round(latency_ms, 3),
                    success=success,
                    error=error,
                )
            )

    def snapshot(self, *, top_n: int = 8) -> dict:
        with self._lock:
            latencies = list(self._latencies_ms)
            return {
                "calls": self._calls,
                "failures": self._failures,
                "avg_latency_ms": round(mean(latencies), 3) if latencies else None,
                "errors": dict(self._errors),
                "top_destinations": [
                    {"destination": name, "count": count}
                    for name, count in self._destinations.most_common(top_n)
                ],
                "recent": [asdict(entry) for entry in list(self._history)[-top_n:]],
            }

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
            self._calls = 0
            self._failures = 0
            self._latencies_ms.clear()
            self._errors.clear()
            self._destinations.clear()


_planner_metrics: PlannerMetrics | None = None


def get_planner_metrics() -> PlannerMetrics:
    global _planner_metrics
    if _planner_metrics is None:
        _planner_metrics = PlannerMetrics(settings.planner_metrics_history_limit)
    return _planner_metrics


def reset_planner_metrics() -> None:
    get_planner_metrics().reset()
