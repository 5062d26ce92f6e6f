from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, ConfigDict

from ..domain.models import DateInfo, DateType
from .holidays import DEFAULT_HOLIDAYS, HolidayTable


class MarkingPalette(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    weekday: str = "#333333"
    saturday: str = "#0066cc"
    sunday: str = "#dc143c"
    holiday: str = "#dc143c"
    saturday_background: str = "#e8f1ff"
    sunday_background: str = "#ffecef"
    holiday_background: str = "#fff0e6"
    event_background: str = "#f5f5f5"
    event_border_width: int = 2
    selected_background: str = "#007AFF"
    selected_text: str = "#FFFFFF"

    def text_color(self, date_type: DateType) -> str:
        return getattr(self, date_type)

    def background_color(self, date_type: DateType) -> str | None:
        if date_type == "weekday":
            return None
        return getattr(self, f"{date_type}_background")


DEFAULT_PALETTE = MarkingPalette()


@dataclass(frozen=True, slots=True)
class DateClassification:
    type: DateType
    color: str


def parse_iso_date(raw: str | None) -> date | None:
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if len(text) != 10:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def date_type_of(
    date_string: str,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
) -> DateType:
    if isinstance(date_string, str):
        date_string = date_string.strip()

    # Holidays win over the day of week.
    if holidays.is_holiday(date_string):
        return "holiday"

    parsed = parse_iso_date(date_string)
    if parsed is None:
        return "weekday"

    weekday = parsed.weekday()
    if weekday == 6:
        return "sunday"
    if weekday == 5:
        return "saturday"
    return "weekday"


def classify(
    date_string: str,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> DateClassification:
    date_type = date_type_of(date_string, holidays=holidays)
    return DateClassification(type=date_type, color=palette.text_color(date_type))


def get_date_info(
    date_string: str,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> DateInfo:
    date_string = date_string.strip()
    classification = classify(date_string, holidays=holidays, palette=palette)
    return DateInfo(
        date=date_string,
        date_type=classification.type,
        color=classification.color,
        holiday_name=holidays.holiday_name(date_string),
        is_weekend=classification.type != "weekday",
    )
