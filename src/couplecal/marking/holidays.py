from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Iterator

import yaml

from ..domain.models import DateRange

# Japanese national holidays, substitute holidays included.
JAPANESE_HOLIDAYS: Mapping[str, str] = MappingProxyType(
    {
        "2024-01-01": "New Year's Day",
        "2024-01-08": "Coming of Age Day",
        "2024-02-11": "National Foundation Day",
        "2024-02-12": "National Foundation Day (substitute)",
        "2024-02-23": "Emperor's Birthday",
        "2024-03-20": "Vernal Equinox Day",
        "2024-04-29": "Showa Day",
        "2024-05-03": "Constitution Memorial Day",
        "2024-05-04": "Greenery Day",
        "2024-05-05": "Children's Day",
        "2024-05-06": "Children's Day (substitute)",
        "2024-07-15": "Marine Day",
        "2024-08-11": "Mountain Day",
        "2024-08-12": "Mountain Day (substitute)",
        "2024-09-16": "Respect for the Aged Day",
        "2024-09-22": "Autumnal Equinox Day",
        "2024-09-23": "Autumnal Equinox Day (substitute)",
        "2024-10-14": "Sports Day",
        "2024-11-03": "Culture Day",
        "2024-11-04": "Culture Day (substitute)",
        "2024-11-23": "Labor Thanksgiving Day",
        "2025-01-01": "New Year's Day",
        "2025-01-13": "Coming of Age Day",
        "2025-02-11": "National Foundation Day",
        "2025-02-23": "Emperor's Birthday",
        "2025-02-24": "Emperor's Birthday (substitute)",
        "2025-03-20": "Vernal Equinox Day",
        "2025-04-29": "Showa Day",
        "2025-05-03": "Constitution Memorial Day",
        "2025-05-04": "Greenery Day",
        "2025-05-05": "Children's Day",
        "2025-05-06": "Children's Day (substitute)",
        "2025-07-21": "Marine Day",
        "2025-08-11": "Mountain Day",
        "2025-09-15": "Respect for the Aged Day",
        "2025-09-23": "Autumnal Equinox Day",
        "2025-10-13": "Sports Day",
        "2025-11-03": "Culture Day",
        "2025-11-23": "Labor Thanksgiving Day",
        "2025-11-24": "Labor Thanksgiving Day (substitute)",
        "2026-01-01": "New Year's Day",
        "2026-01-12": "Coming of Age Day",
        "2026-02-11": "National Foundation Day",
        "2026-02-23": "Emperor's Birthday",
        "2026-03-20": "Vernal Equinox Day",
        "2026-04-29": "Showa Day",
        "2026-05-03": "Constitution Memorial Day",
        "2026-05-04": "Greenery Day",
        "2026-05-05": "Children's Day",
        "2026-05-06": "Children's Day (substitute)",
        "2026-07-20": "Marine Day",
        "2026-08-11": "Mountain Day",
        "2026-09-21": "Respect for the Aged Day",
        "2026-09-22": "Autumnal Equinox Day",
        "2026-10-12": "Sports Day",
        "2026-11-03": "Culture Day",
        "2026-11-23": "Labor Thanksgiving Day",
    }
)


class HolidayTable:
    """Read-only lookup of ``YYYY-MM-DD`` dates to holiday names."""

    def __init__(self, holidays: Mapping[str, str]) -> None:
        self._holidays: Mapping[str, str] = MappingProxyType(dict(holidays))

    def __len__(self) -> int:
        return len(self._holidays)

    def __contains__(self, date_string: object) -> bool:
        return date_string in self._holidays

    def is_holiday(self, date_string: str) -> bool:
        return date_string in self._holidays

    def holiday_name(self, date_string: str) -> str | None:
        return self._holidays.get(date_string)

    def dates_between(self, date_range: DateRange) -> Iterator[tuple[str, str]]:
        for date_string in sorted(self._holidays):
            if date_range.start <= date_string <= date_range.end:
                yield date_string, self._holidays[date_string]

    def merged(self, extra: Mapping[str, str]) -> HolidayTable:
        combined = dict(self._holidays)
        combined.update(extra)
        return HolidayTable(combined)


DEFAULT_HOLIDAYS = HolidayTable(JAPANESE_HOLIDAYS)


def is_holiday(date_string: str) -> bool:
    return DEFAULT_HOLIDAYS.is_holiday(date_string)


def holiday_name(date_string: str) -> str | None:
    return DEFAULT_HOLIDAYS.holiday_name(date_string)


def load_holiday_table(path: Path | None, *, base: HolidayTable = DEFAULT_HOLIDAYS) -> HolidayTable:
    """Merge a YAML mapping of ``date: name`` entries into ``base``."""
    if path is None:
        return base
    if not path.exists():
        raise FileNotFoundError(f"Holiday file not found: {path}")

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return base
    if not isinstance(raw, dict):
        raise ValueError("Holiday file must be a YAML mapping of YYYY-MM-DD: name")

    extra: dict[str, str] = {}
    for raw_date, raw_name in raw.items():
        # PyYAML parses unquoted ISO dates into date objects
        date_string = raw_date.isoformat() if hasattr(raw_date, "isoformat") else str(raw_date).strip()
        name = str(raw_name).strip() if raw_name is not None else ""
        if not name:
            raise ValueError(f"Holiday name must not be empty for {date_string}")
        extra[date_string] = name
    return base.merged(extra)
