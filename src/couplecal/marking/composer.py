from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date

from ..domain.models import BackgroundStyle, CalendarEvent, DateMarking, DateRange
from .classifier import DEFAULT_PALETTE, MarkingPalette, classify
from .holidays import DEFAULT_HOLIDAYS, HolidayTable
from .ranges import clip_span, event_span, iter_dates

LOGGER = logging.getLogger(__name__)


def base_marking(
    date_string: str,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> DateMarking:
    classification = classify(date_string, holidays=holidays, palette=palette)
    background_color = palette.background_color(classification.type)
    background = BackgroundStyle(background_color=background_color) if background_color else None
    return DateMarking(
        date_type=classification.type,
        text_color=classification.color,
        bold=classification.color != palette.weekday,
        background=background,
    )


def compose_base_markings(
    date_range: DateRange,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> dict[str, DateMarking]:
    start = date.fromisoformat(date_range.start)
    end = date.fromisoformat(date_range.end)
    return {
        day.isoformat(): base_marking(day.isoformat(), holidays=holidays, palette=palette)
        for day in iter_dates(start, end)
    }


def with_event(marking: DateMarking, color: str, *, palette: MarkingPalette = DEFAULT_PALETTE) -> DateMarking:
    """Return ``marking`` with one more indicator and a border in ``color``."""
    if marking.background is not None:
        background = marking.background.model_copy(
            update={"border_color": color, "border_width": palette.event_border_width}
        )
    else:
        background = BackgroundStyle(
            background_color=palette.event_background,
            border_color=color,
            border_width=palette.event_border_width,
        )
    return marking.model_copy(
        update={"indicators": (*marking.indicators, color), "background": background}
    )


def apply_event_markings(
    events: Iterable[CalendarEvent],
    date_range: DateRange,
    base_markings: Mapping[str, DateMarking] | None = None,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> dict[str, DateMarking]:
    """Fold events, in order, onto a copy of ``base_markings``.

    The border of a date shared by several events takes the color of the
    last event folded onto it.
    """
    markings = dict(base_markings or {})

    for event in events:
        color = event.color
        if color is None:
            continue

        span = event_span(event)
        if span is None:
            LOGGER.warning("Skipping event '%s' with unparseable dates (%r, %r)", event.id, event.date, event.end_date)
            continue

        clipped = clip_span(span, date_range)
        if clipped is None:
            continue

        for day in iter_dates(*clipped):
            date_string = day.isoformat()
            current = markings.get(date_string)
            if current is None:
                current = base_marking(date_string, holidays=holidays, palette=palette)
            markings[date_string] = with_event(current, color, palette=palette)

    return markings


def apply_selection(
    markings: Mapping[str, DateMarking],
    selected_date: str | None,
    *,
    holidays: HolidayTable = DEFAULT_HOLIDAYS,
    palette: MarkingPalette = DEFAULT_PALETTE,
) -> dict[str, DateMarking]:
    updated = dict(markings)
    if not selected_date:
        return updated

    current = updated.get(selected_date)
    if current is None:
        current = base_marking(selected_date, holidays=holidays, palette=palette)

    updated[selected_date] = current.model_copy(
        update={
            "selected": True,
            "text_color": palette.selected_text,
            "bold": True,
            "background": BackgroundStyle(background_color=palette.selected_background),
        }
    )
    return updated
