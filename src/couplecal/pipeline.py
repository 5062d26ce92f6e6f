from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from .diagnostics import COMPOSE_OPERATION, PerformanceTracker
from .domain.models import CalendarEvent, DateRange, MarkingResult, coerce_events
from .marking.classifier import DEFAULT_PALETTE, MarkingPalette
from .marking.composer import apply_event_markings, apply_selection, compose_base_markings
from .marking.holidays import DEFAULT_HOLIDAYS, HolidayTable
from .marking.ranges import filter_by_range, visible_range
from .storage.cache import MarkingCache

LOGGER = logging.getLogger(__name__)

EventRecords = Sequence[CalendarEvent | Mapping[str, Any]]


def empty_result(date_range: DateRange) -> MarkingResult:
    return MarkingResult(
        marked_dates={},
        processed_event_count=0,
        processing_time_ms=0.0,
        date_range=date_range,
    )


class MarkingPipeline:
    """Computes calendar markings for the visible window, backed by a cache."""

    def __init__(
        self,
        *,
        cache: MarkingCache,
        holidays: HolidayTable = DEFAULT_HOLIDAYS,
        palette: MarkingPalette = DEFAULT_PALETTE,
        tracker: PerformanceTracker | None = None,
    ) -> None:
        self._cache = cache
        self._holidays = holidays
        self._palette = palette
        self._tracker = tracker or PerformanceTracker()

    @property
    def cache(self) -> MarkingCache:
        return self._cache

    @property
    def tracker(self) -> PerformanceTracker:
        return self._tracker

    @property
    def holidays(self) -> HolidayTable:
        return self._holidays

    @property
    def palette(self) -> MarkingPalette:
        return self._palette

    def generate_marked_dates(
        self,
        events: EventRecords | None,
        selected_date: str | None = None,
        reference_date: date | None = None,
    ) -> MarkingResult:
        started = time.perf_counter()
        date_range = visible_range(reference_date or date.today())

        try:
            normalized = coerce_events(events)

            with self._tracker.measure("cache_get"):
                cached = self._cache.get(normalized, date_range, selected_date)
            if cached is not None:
                return cached

            with self._tracker.measure(COMPOSE_OPERATION):
                in_range = filter_by_range(normalized, date_range)
                markings = compose_base_markings(date_range, holidays=self._holidays, palette=self._palette)
                markings = apply_event_markings(
                    in_range,
                    date_range,
                    markings,
                    holidays=self._holidays,
                    palette=self._palette,
                )
                markings = apply_selection(
                    markings,
                    selected_date,
                    holidays=self._holidays,
                    palette=self._palette,
                )

            result = MarkingResult(
                marked_dates=markings,
                processed_event_count=len(in_range),
                processing_time_ms=(time.perf_counter() - started) * 1000,
                date_range=date_range,
            )

            with self._tracker.measure("cache_set"):
                self._cache.set(normalized, date_range, selected_date, result)
            return result
        except Exception:
            LOGGER.exception("Calendar marking failed for range %s..%s", date_range.start, date_range.end)
            return empty_result(date_range)
