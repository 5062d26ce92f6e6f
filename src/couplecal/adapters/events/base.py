from __future__ import annotations

from typing import Protocol

from ...domain.models import CalendarEvent


class EventSourceError(RuntimeError):
    """Raised when event records cannot be loaded from a source."""


class EventSource(Protocol):
    @property
    def source_name(self) -> str:
        """Short label used in logs and health output."""

    def get_events(self) -> list[CalendarEvent]:
        """Return the full, unfiltered list of shared events."""
