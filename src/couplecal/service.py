from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import date, datetime, tzinfo
from typing import Any

from .adapters.events import EventSource, LocalFileEventSource
from .diagnostics import OptimizationReport, PerformanceTracker, build_optimization_report
from .domain.models import CacheStats, CalendarEvent, MarkingResult, coerce_events
from .marking.holidays import load_holiday_table
from .marking.ranges import visible_range
from .pipeline import MarkingPipeline
from .settings import AppSettings
from .storage.cache import MarkingCache

LOGGER = logging.getLogger(__name__)


class CalendarService:
    """Holds the current event list and serves markings for it."""

    def __init__(
        self,
        *,
        pipeline: MarkingPipeline,
        source: EventSource,
        timezone_value: tzinfo | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._source = source
        self._timezone = timezone_value
        self._events: list[CalendarEvent] = []
        self._refreshed_at: datetime | None = None
        self._lock = threading.Lock()

    @property
    def pipeline(self) -> MarkingPipeline:
        return self._pipeline

    @property
    def source_name(self) -> str:
        return self._source.source_name

    @property
    def refreshed_at(self) -> datetime | None:
        return self._refreshed_at

    def events(self) -> list[CalendarEvent]:
        with self._lock:
            return list(self._events)

    def today(self) -> date:
        return datetime.now(self._timezone).date()

    def replace_events(self, records: Sequence[CalendarEvent | Mapping[str, Any]]) -> bool:
        new_events = coerce_events(records)
        with self._lock:
            old_events = self._events
            self._events = new_events
            self._refreshed_at = datetime.now(self._timezone)
        return self._pipeline.cache.invalidate_by_events(old_events, new_events)

    def refresh_events(self) -> int:
        """Reload events from the source; raises ``EventSourceError`` on failure."""
        records = self._source.get_events()
        changed = self.replace_events(records)
        LOGGER.info(
            "Loaded %d events from '%s' (changed=%s)",
            len(records),
            self._source.source_name,
            changed,
        )
        return len(records)

    def marked_dates(
        self,
        selected_date: str | None = None,
        reference_date: date | None = None,
    ) -> MarkingResult:
        return self._pipeline.generate_marked_dates(
            self.events(),
            selected_date,
            reference_date or self.today(),
        )

    def warm_cache(self) -> MarkingResult:
        return self.marked_dates()

    def invalidate_range(self, reference_date: date | None = None) -> int:
        return self._pipeline.cache.invalidate_by_date_range(visible_range(reference_date or self.today()))

    def prune_cache(self) -> int:
        return self._pipeline.cache.prune_expired_entries()

    def cache_stats(self) -> CacheStats:
        return self._pipeline.cache.get_stats()

    def report(self) -> OptimizationReport:
        return build_optimization_report(self._pipeline.tracker, self._pipeline.cache)


def build_service(settings: AppSettings) -> CalendarService:
    cache = MarkingCache(
        ttl_seconds=settings.yaml.cache.ttl_seconds,
        max_size=settings.yaml.cache.max_size,
    )
    tracker = PerformanceTracker(
        slow_operation_ms=settings.yaml.diagnostics.slow_operation_ms,
        history_size=settings.yaml.diagnostics.history_size,
    )
    pipeline = MarkingPipeline(
        cache=cache,
        holidays=load_holiday_table(settings.holidays_path),
        palette=settings.yaml.theme.to_palette(),
        tracker=tracker,
    )
    source = LocalFileEventSource(path=settings.events_path)
    return CalendarService(pipeline=pipeline, source=source, timezone_value=settings.timezone)
