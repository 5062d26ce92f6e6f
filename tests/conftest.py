from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from couplecal.domain.models import CalendarEvent


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_event(
    event_id: str,
    start: str | None,
    end: str | None = None,
    *,
    color: str | None = "#ff6b6b",
    title: str = "",
) -> CalendarEvent:
    payload = {"id": event_id, "title": title or f"Event {event_id}", "date": start, "endDate": end}
    if color is not None:
        payload["category"] = {"id": "date", "name": "Date", "color": color}
    return CalendarEvent.model_validate(payload)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
