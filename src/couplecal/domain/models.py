from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date as calendar_date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

LOGGER = logging.getLogger(__name__)

DateType = Literal["weekday", "saturday", "sunday", "holiday"]


def _text_or_empty(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class EventCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    color: str | None = None
    icon: str | None = None

    @field_validator("id", "name", mode="before")
    @classmethod
    def lenient_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("color", "icon", mode="before")
    @classmethod
    def lenient_optional_text(cls, value: Any) -> str | None:
        return _text_or_none(value)


class CalendarEvent(BaseModel):
    """Event record as delivered by the event subscription.

    Only ``date``, ``end_date`` and the category color affect markings. Every
    other field is carried as-is and falls back to its default when missing,
    null or of the wrong type, so a partial record is never dropped for them.
    Date fields stay raw strings: malformed values are tolerated here and
    skipped later by the marking pipeline.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    title: str = ""
    date: str | None = None
    end_date: str | None = Field(default=None, alias="endDate")
    time: str | None = None
    end_time: str | None = Field(default=None, alias="endTime")
    is_all_day: bool = Field(default=False, alias="isAllDay")
    description: str | None = None
    category: EventCategory | None = None

    @field_validator("id", "title", mode="before")
    @classmethod
    def lenient_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("date", "end_date", mode="before")
    @classmethod
    def date_as_text(cls, value: Any) -> str | None:
        if isinstance(value, calendar_date):
            return value.strftime("%Y-%m-%d")
        return _text_or_none(value)

    @field_validator("time", "end_time", "description", mode="before")
    @classmethod
    def lenient_optional_text(cls, value: Any) -> str | None:
        return _text_or_none(value)

    @field_validator("is_all_day", mode="before")
    @classmethod
    def lenient_flag(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @field_validator("category", mode="before")
    @classmethod
    def category_mapping(cls, value: Any) -> Any:
        if isinstance(value, (EventCategory, Mapping)):
            return value
        return None

    @property
    def color(self) -> str | None:
        if self.category is None:
            return None
        return self.category.color or None


def coerce_events(records: Iterable[CalendarEvent | Mapping[str, Any]] | None) -> list[CalendarEvent]:
    if records is None:
        return []

    events: list[CalendarEvent] = []
    for index, record in enumerate(records):
        if isinstance(record, CalendarEvent):
            events.append(record)
            continue
        if not isinstance(record, Mapping):
            LOGGER.warning("Skipping event record #%d: expected a mapping, got %s", index, type(record).__name__)
            continue
        try:
            events.append(CalendarEvent.model_validate(dict(record)))
        except ValidationError as exc:
            LOGGER.warning("Skipping malformed event record #%d: %s", index, exc.errors()[0].get("msg"))
    return events


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.end < self.start:
            raise ValueError("date range end must be >= start")
        return self


class BackgroundStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    background_color: str
    border_color: str | None = None
    border_width: int | None = None


class DateMarking(BaseModel):
    model_config = ConfigDict(frozen=True)

    date_type: DateType
    text_color: str
    bold: bool = False
    background: BackgroundStyle | None = None
    indicators: tuple[str, ...] = ()
    selected: bool = False


class MarkingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    marked_dates: dict[str, DateMarking] = Field(default_factory=dict)
    processed_event_count: int = 0
    processing_time_ms: float = 0.0
    date_range: DateRange


class DateInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    date_type: DateType
    color: str
    holiday_name: str | None = None
    is_weekend: bool


class CacheStats(BaseModel):
    hits: int
    misses: int
    size: int
    hit_rate: float
