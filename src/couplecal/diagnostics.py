from __future__ import annotations

import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from pydantic import BaseModel, Field

from .domain.models import CacheStats
from .storage.cache import MarkingCache

LOGGER = logging.getLogger(__name__)

DEFAULT_SLOW_OPERATION_MS = 50.0
DEFAULT_HISTORY_SIZE = 1000
COMPOSE_OPERATION = "calendar_compose"


class OperationStats(BaseModel):
    operation: str
    count: int = 0
    total_ms: float = 0.0
    average_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0


class OptimizationSummary(BaseModel):
    total_operations: int
    average_processing_ms: float
    cache_hit_rate: float


class OptimizationReport(BaseModel):
    timestamp: datetime
    summary: OptimizationSummary
    operations: list[OperationStats] = Field(default_factory=list)
    cache: CacheStats
    recommendations: list[str] = Field(default_factory=list)


class PerformanceTracker:
    def __init__(
        self,
        *,
        slow_operation_ms: float = DEFAULT_SLOW_OPERATION_MS,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._slow_operation_ms = slow_operation_ms
        self._samples: deque[tuple[str, float]] = deque(maxlen=history_size)
        self._lock = threading.Lock()

    @contextmanager
    def measure(self, operation: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(operation, (time.perf_counter() - started) * 1000)

    def record(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            self._samples.append((operation, duration_ms))
        if duration_ms > self._slow_operation_ms:
            LOGGER.warning("Slow operation %s took %.2fms", operation, duration_ms)

    def operations(self) -> list[str]:
        with self._lock:
            return list(dict.fromkeys(name for name, _ in self._samples))

    def get_stats(self, operation: str | None = None) -> OperationStats:
        with self._lock:
            durations = [
                duration
                for name, duration in self._samples
                if operation is None or name == operation
            ]
        label = operation or "all"
        if not durations:
            return OperationStats(operation=label)

        total = sum(durations)
        return OperationStats(
            operation=label,
            count=len(durations),
            total_ms=total,
            average_ms=total / len(durations),
            min_ms=min(durations),
            max_ms=max(durations),
        )

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


def _recommendations(
    overall: OperationStats,
    operations: list[OperationStats],
    cache_stats: CacheStats,
) -> list[str]:
    notes: list[str] = []
    if cache_stats.hit_rate < 0.7 and cache_stats.hits + cache_stats.misses > 10:
        notes.append("Cache hit rate is low; consider a larger cache or a longer TTL.")
    if overall.average_ms > 50:
        notes.append("Average processing time exceeds 50ms; further optimization is advisable.")

    compose_max = [stats.max_ms for stats in operations if "compose" in stats.operation]
    if compose_max and max(compose_max) > 100:
        notes.append("Calendar composition peaked above 100ms; consider splitting the work.")
    if cache_stats.size > 40:
        notes.append("Cache is growing large; keep an eye on memory usage.")

    if not notes:
        notes.append("Performance is good; keep the current settings.")
    return notes


def build_optimization_report(tracker: PerformanceTracker, cache: MarkingCache) -> OptimizationReport:
    overall = tracker.get_stats()
    operations = [tracker.get_stats(name) for name in tracker.operations()]
    cache_stats = cache.get_stats()
    return OptimizationReport(
        timestamp=datetime.now(timezone.utc),
        summary=OptimizationSummary(
            total_operations=overall.count,
            average_processing_ms=overall.average_ms,
            cache_hit_rate=cache_stats.hit_rate,
        ),
        operations=operations,
        cache=cache_stats,
        recommendations=_recommendations(overall, operations, cache_stats),
    )


def format_optimization_report(report: OptimizationReport) -> str:
    lines = [
        "Calendar performance report",
        f"Generated: {report.timestamp.isoformat()}",
        "",
        "Summary",
        f"  Operations: {report.summary.total_operations}",
        f"  Average: {report.summary.average_processing_ms:.2f}ms",
        f"  Cache hit rate: {report.summary.cache_hit_rate * 100:.1f}%",
        "",
    ]
    for stats in sorted(report.operations, key=lambda item: item.total_ms, reverse=True):
        lines.extend(
            [
                f"{stats.operation}:",
                f"  Count: {stats.count}",
                f"  Total: {stats.total_ms:.2f}ms",
                f"  Average: {stats.average_ms:.2f}ms",
                f"  Min: {stats.min_ms:.2f}ms",
                f"  Max: {stats.max_ms:.2f}ms",
            ]
        )
    lines.extend(
        [
            "",
            "Cache",
            f"  Hits: {report.cache.hits}",
            f"  Misses: {report.cache.misses}",
            f"  Size: {report.cache.size}",
            "",
            "Recommendations",
        ]
    )
    lines.extend(f"  - {note}" for note in report.recommendations)
    return "\n".join(lines)
