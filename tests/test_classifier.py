from __future__ import annotations

import pytest

from couplecal.marking.classifier import (
    DEFAULT_PALETTE,
    MarkingPalette,
    classify,
    get_date_info,
    parse_iso_date,
)
from couplecal.marking.holidays import JAPANESE_HOLIDAYS, HolidayTable


@pytest.mark.parametrize(
    ("date_string", "expected_type"),
    [
        ("2025-06-02", "weekday"),
        ("2025-06-07", "saturday"),
        ("2025-06-08", "sunday"),
        ("2025-07-21", "holiday"),
        ("2025-05-03", "holiday"),
        ("2024-11-03", "holiday"),
    ],
    ids=["monday", "saturday", "sunday", "monday-holiday", "saturday-holiday", "sunday-holiday"],
)
def test_classify_types(date_string, expected_type):
    assert classify(date_string).type == expected_type


def test_every_registered_holiday_classifies_as_holiday():
    for date_string in JAPANESE_HOLIDAYS:
        assert classify(date_string).type == "holiday", date_string


def test_colors_per_type():
    assert classify("2025-06-02").color == "#333333"
    assert classify("2025-06-07").color == "#0066cc"
    assert classify("2025-06-08").color == "#dc143c"
    assert classify("2025-07-21").color == "#dc143c"


def test_holiday_and_sunday_share_color_but_not_type():
    sunday = classify("2025-06-08")
    holiday = classify("2025-07-21")

    assert sunday.color == holiday.color
    assert sunday.type != holiday.type


def test_custom_table_and_palette():
    table = HolidayTable({"2025-06-02": "Company Day"})
    palette = MarkingPalette(holiday="#aa0000")

    result = classify("2025-06-02", holidays=table, palette=palette)

    assert result.type == "holiday"
    assert result.color == "#aa0000"
    assert classify("2025-07-21", holidays=table).type == "weekday"


@pytest.mark.parametrize("raw", ["", "2025-02-30", "garbage", "2025/06/02", None])
def test_unparseable_dates_fall_back_to_weekday(raw):
    assert parse_iso_date(raw) is None
    if raw is not None:
        assert classify(raw).type == "weekday"


def test_parse_iso_date_strips_whitespace():
    parsed = parse_iso_date(" 2025-06-02 ")

    assert parsed is not None
    assert parsed.isoformat() == "2025-06-02"


def test_get_date_info_reports_holiday_name():
    info = get_date_info("2025-05-03")

    assert info.date_type == "holiday"
    assert info.holiday_name == "Constitution Memorial Day"
    assert info.is_weekend is True
    assert info.color == DEFAULT_PALETTE.holiday


def test_get_date_info_for_weekday():
    info = get_date_info("2025-06-03")

    assert info.date_type == "weekday"
    assert info.holiday_name is None
    assert info.is_weekend is False


def test_surrounding_whitespace_does_not_hide_holidays():
    assert classify(" 2025-07-21").type == "holiday"
    assert get_date_info("2025-07-21 ").holiday_name == "Marine Day"
