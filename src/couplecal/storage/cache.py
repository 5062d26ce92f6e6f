from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from ..domain.models import CacheStats, CalendarEvent, DateRange, MarkingResult
from ..marking.ranges import format_date_range

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_SIZE = 50
EMPTY_EVENTS_HASH = "empty"
NO_SELECTION = "none"


@dataclass(slots=True)
class CacheEntry:
    key: str
    result: MarkingResult
    timestamp: datetime
    events_hash: str
    selected_date: str | None

    def age_seconds(self, now: datetime) -> float:
        return (now - self.timestamp).total_seconds()

    def is_stale(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        reference = now or datetime.now(timezone.utc)
        return self.age_seconds(reference) > ttl_seconds


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _event_projection(event: CalendarEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "date": event.date,
        "end_date": event.end_date,
        "title": event.title or "",
        "category": event.color or "",
    }


def events_hash(events: Sequence[CalendarEvent] | None) -> str:
    """Content hash of the fields that affect markings, independent of order."""
    if not events:
        return EMPTY_EVENTS_HASH

    projection = sorted(
        (_event_projection(event) for event in events),
        key=lambda item: (item["id"], json.dumps(item, sort_keys=True)),
    )
    payload = json.dumps(projection, ensure_ascii=True, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cache_key(date_range: DateRange, selected_date: str | None, hashed_events: str) -> str:
    return f"{format_date_range(date_range)}_{selected_date or NO_SELECTION}_{hashed_events}"


class MarkingCache:
    """In-memory cache of marking results keyed by range, selection and event content."""

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        if max_size < 1:
            raise ValueError("max_size must be >= 1")

        self._ttl_seconds = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def prune_expired_entries(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_stale(self._ttl_seconds, now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def _enforce_max_size(self) -> None:
        overflow = len(self._entries) - self._max_size
        if overflow <= 0:
            return
        oldest = sorted(self._entries.values(), key=lambda entry: entry.timestamp)[:overflow]
        for entry in oldest:
            del self._entries[entry.key]

    def get(
        self,
        events: Sequence[CalendarEvent] | None,
        date_range: DateRange,
        selected_date: str | None,
    ) -> MarkingResult | None:
        key = cache_key(date_range, selected_date, events_hash(events))
        with self._lock:
            self.prune_expired_entries()
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                LOGGER.debug("Marking cache miss for %s", key[:50])
                return None

            entry.timestamp = self._clock()
            self._hits += 1
            LOGGER.debug("Marking cache hit for %s", key[:50])
            return entry.result.model_copy(deep=True)

    def set(
        self,
        events: Sequence[CalendarEvent] | None,
        date_range: DateRange,
        selected_date: str | None,
        result: MarkingResult,
    ) -> None:
        hashed_events = events_hash(events)
        key = cache_key(date_range, selected_date, hashed_events)
        entry = CacheEntry(
            key=key,
            result=result.model_copy(deep=True),
            timestamp=self._clock(),
            events_hash=hashed_events,
            selected_date=selected_date,
        )
        with self._lock:
            self._entries[key] = entry
            self._enforce_max_size()
            size = len(self._entries)
        LOGGER.debug(
            "Marking cache set for %s (size=%d, processing=%.2fms)",
            key[:50],
            size,
            result.processing_time_ms,
        )

    def invalidate_by_events(
        self,
        old_events: Sequence[CalendarEvent] | None,
        new_events: Sequence[CalendarEvent] | None,
    ) -> bool:
        if events_hash(old_events) == events_hash(new_events):
            return False
        self.clear()
        LOGGER.info("Marking cache cleared after event changes")
        return True

    def invalidate_by_date_range(self, date_range: DateRange) -> int:
        range_key = format_date_range(date_range)
        with self._lock:
            doomed = [key for key in self._entries if range_key in key]
            for key in doomed:
                del self._entries[key]
        if doomed:
            LOGGER.info("Invalidated %d marking cache entries for %s", len(doomed), range_key)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                hit_rate=self._hits / total if total > 0 else 0.0,
            )

    def get_debug_info(self) -> dict[str, Any]:
        now = self._clock()
        with self._lock:
            entries = [
                {
                    "key": entry.key[:80] + ("..." if len(entry.key) > 80 else ""),
                    "age_seconds": round(entry.age_seconds(now)),
                    "events_hash": entry.events_hash[:10] + "...",
                    "selected_date": entry.selected_date,
                    "processing_time_ms": entry.result.processing_time_ms,
                }
                for entry in self._entries.values()
            ]
        return {"entries": entries, "stats": self.get_stats().model_dump()}
