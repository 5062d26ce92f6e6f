from __future__ import annotations

from datetime import date

from conftest import make_event
from couplecal.diagnostics import COMPOSE_OPERATION, PerformanceTracker
from couplecal.marking.classifier import DEFAULT_PALETTE
from couplecal.marking.ranges import visible_range
from couplecal.pipeline import MarkingPipeline
from couplecal.storage.cache import MarkingCache

REFERENCE = date(2025, 7, 15)


def _pipeline(clock=None, **kwargs) -> MarkingPipeline:
    cache = MarkingCache(clock=clock) if clock is not None else MarkingCache()
    return MarkingPipeline(cache=cache, **kwargs)


def test_empty_input_marks_every_visible_date():
    pipeline = _pipeline()

    result = pipeline.generate_marked_dates([], None, REFERENCE)

    assert result.processed_event_count == 0
    assert result.date_range.start == "2025-06-01"
    assert result.date_range.end == "2025-08-31"
    assert len(result.marked_dates) == 92
    assert all(not marking.indicators for marking in result.marked_dates.values())
    assert result.marked_dates["2025-07-21"].date_type == "holiday"
    assert result.marked_dates["2025-06-07"].date_type == "saturday"


def test_none_events_behave_like_empty():
    result = _pipeline().generate_marked_dates(None, None, REFERENCE)

    assert result.processed_event_count == 0
    assert len(result.marked_dates) == 92


def test_second_call_hits_cache_with_identical_markings(clock):
    pipeline = _pipeline(clock)
    events = [make_event("a", "2025-07-01"), make_event("b", "2025-07-05", "2025-07-08")]

    first = pipeline.generate_marked_dates(events, "2025-07-02", REFERENCE)
    hits_before = pipeline.cache.get_stats().hits
    second = pipeline.generate_marked_dates(list(events), "2025-07-02", REFERENCE)

    assert second.marked_dates == first.marked_dates
    assert second.processed_event_count == first.processed_event_count
    assert pipeline.cache.get_stats().hits == hits_before + 1


def test_changed_events_after_invalidation_miss(clock):
    pipeline = _pipeline(clock)
    old = [make_event("a", "2025-07-01")]
    new = [make_event("a", "2025-07-02")]
    pipeline.generate_marked_dates(old, None, REFERENCE)

    pipeline.cache.invalidate_by_events(old, new)

    assert pipeline.cache.get(new, visible_range(REFERENCE), None) is None
    result = pipeline.generate_marked_dates(new, None, REFERENCE)
    assert result.marked_dates["2025-07-02"].indicators == ("#ff6b6b",)
    assert result.marked_dates["2025-07-01"].indicators == ()


def test_counts_only_events_in_window():
    events = [
        make_event("in", "2025-07-01"),
        make_event("edge", "2025-05-30", "2025-06-01"),
        make_event("out", "2025-10-01"),
        make_event("broken", "not a date"),
    ]

    result = _pipeline().generate_marked_dates(events, None, REFERENCE)

    assert result.processed_event_count == 2
    assert result.marked_dates["2025-06-01"].indicators == ("#ff6b6b",)
    assert result.processing_time_ms >= 0


def test_accepts_raw_records_with_wire_names():
    records = [
        {
            "id": "trip",
            "title": "Trip",
            "date": "2025-08-09",
            "endDate": "2025-08-11",
            "category": {"id": "travel", "name": "Travel", "color": "#6c5ce7"},
            "createdBy": "someone",
        },
        "not a record",
        {"id": "bad", "date": "2025-07-01", "category": "red"},
    ]

    result = _pipeline().generate_marked_dates(records, None, REFERENCE)

    assert result.processed_event_count == 1
    assert [day for day, marking in result.marked_dates.items() if marking.indicators] == [
        "2025-08-09",
        "2025-08-10",
        "2025-08-11",
    ]


def test_selected_holiday_with_event_is_overridden():
    events = [make_event("a", "2025-07-21")]

    result = _pipeline().generate_marked_dates(events, "2025-07-21", REFERENCE)

    marking = result.marked_dates["2025-07-21"]
    assert marking.selected is True
    assert marking.text_color == DEFAULT_PALETTE.selected_text
    assert marking.background.background_color == DEFAULT_PALETTE.selected_background
    assert marking.indicators == ("#ff6b6b",)


def test_selected_date_outside_window_is_added():
    result = _pipeline().generate_marked_dates([], "2025-12-24", REFERENCE)

    assert len(result.marked_dates) == 93
    assert result.marked_dates["2025-12-24"].selected is True


class _BrokenCache(MarkingCache):
    def get(self, events, date_range, selected_date):
        raise RuntimeError("hash failure")


def test_failures_return_empty_result():
    pipeline = MarkingPipeline(cache=_BrokenCache())

    result = pipeline.generate_marked_dates([make_event("a", "2025-07-01")], "2025-07-01", REFERENCE)

    assert result.marked_dates == {}
    assert result.processed_event_count == 0
    assert result.processing_time_ms == 0
    assert result.date_range == visible_range(REFERENCE)


def test_non_iterable_events_return_empty_result():
    result = _pipeline().generate_marked_dates(42, None, REFERENCE)  # type: ignore[arg-type]

    assert result.marked_dates == {}
    assert result.date_range.start == "2025-06-01"


def test_reference_date_defaults_to_today():
    result = _pipeline().generate_marked_dates([])

    assert result.date_range == visible_range(date.today())


def test_tracker_records_compose_and_cache_operations():
    tracker = PerformanceTracker()
    pipeline = _pipeline(tracker=tracker)

    pipeline.generate_marked_dates([], None, REFERENCE)
    pipeline.generate_marked_dates([], None, REFERENCE)

    assert tracker.get_stats(COMPOSE_OPERATION).count == 1
    assert tracker.get_stats("cache_get").count == 2
    assert tracker.get_stats("cache_set").count == 1


def test_partial_records_with_null_opaque_fields_are_marked():
    records = [
        {"id": "a", "title": None, "date": "2025-07-01", "category": {"color": "#ff0000"}},
        {"id": "b", "date": "2025-07-02", "isAllDay": None, "category": {"color": "#00ff00"}},
        {"id": "c", "date": "2025-07-03", "category": {"id": None, "name": None, "color": "#0000ff"}},
        {"id": 7, "title": ["odd"], "date": "2025-07-04", "isAllDay": "yes", "category": {"color": "#123456"}},
    ]

    result = _pipeline().generate_marked_dates(records, None, REFERENCE)

    assert result.processed_event_count == 4
    assert result.marked_dates["2025-07-01"].indicators == ("#ff0000",)
    assert result.marked_dates["2025-07-02"].indicators == ("#00ff00",)
    assert result.marked_dates["2025-07-03"].indicators == ("#0000ff",)
    assert result.marked_dates["2025-07-04"].indicators == ("#123456",)
