from .classifier import (
    DEFAULT_PALETTE,
    DateClassification,
    MarkingPalette,
    classify,
    get_date_info,
    parse_iso_date,
)
from .composer import apply_event_markings, apply_selection, base_marking, compose_base_markings
from .holidays import DEFAULT_HOLIDAYS, HolidayTable, holiday_name, is_holiday, load_holiday_table
from .ranges import filter_by_range, format_date_range, visible_range

__all__ = [
    "DEFAULT_HOLIDAYS",
    "DEFAULT_PALETTE",
    "DateClassification",
    "HolidayTable",
    "MarkingPalette",
    "apply_event_markings",
    "apply_selection",
    "base_marking",
    "classify",
    "compose_base_markings",
    "filter_by_range",
    "format_date_range",
    "get_date_info",
    "holiday_name",
    "is_holiday",
    "load_holiday_table",
    "parse_iso_date",
    "visible_range",
]
