from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable, Iterator
from datetime import date, timedelta

from ..domain.models import CalendarEvent, DateRange
from .classifier import parse_iso_date


def visible_range(reference_date: date) -> DateRange:
    """Return the previous, current and next month around ``reference_date``."""
    year, month = reference_date.year, reference_date.month

    if month == 1:
        start = date(year - 1, 12, 1)
    else:
        start = date(year, month - 1, 1)

    if month == 12:
        next_year, next_month = year + 1, 1
    else:
        next_year, next_month = year, month + 1
    end = date(next_year, next_month, monthrange(next_year, next_month)[1])

    return DateRange(start=start.isoformat(), end=end.isoformat())


def format_date_range(date_range: DateRange) -> str:
    return f"{date_range.start} to {date_range.end}"


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def event_span(event: CalendarEvent) -> tuple[date, date] | None:
    """Return the inclusive ``(start, end)`` days of an event.

    ``None`` when ``date`` or a present ``end_date`` does not parse. An end
    before the start collapses to a single day.
    """
    start = parse_iso_date(event.date)
    if start is None:
        return None
    if not event.end_date:
        return start, start

    end = parse_iso_date(event.end_date)
    if end is None:
        return None
    if end < start:
        return start, start
    return start, end


def clip_span(span: tuple[date, date], date_range: DateRange) -> tuple[date, date] | None:
    range_start = date.fromisoformat(date_range.start)
    range_end = date.fromisoformat(date_range.end)
    start = max(span[0], range_start)
    end = min(span[1], range_end)
    if start > end:
        return None
    return start, end


def filter_by_range(events: Iterable[CalendarEvent] | None, date_range: DateRange) -> list[CalendarEvent]:
    if events is None:
        return []

    selected: list[CalendarEvent] = []
    for event in events:
        if parse_iso_date(event.date) is None:
            continue
        event_start = event.date.strip()
        event_end = (event.end_date or "").strip() or event_start
        if event_end < event_start:
            event_end = event_start
        if event_start <= date_range.end and event_end >= date_range.start:
            selected.append(event)
    return selected
