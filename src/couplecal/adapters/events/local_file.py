from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import yaml

from ...domain.models import CalendarEvent, coerce_events
from .base import EventSourceError


def _read_events_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise EventSourceError(f"Unable to read events file: {path}") from exc
    except OSError as exc:
        raise EventSourceError(f"Unable to read events file: {path}") from exc


def _normalize_record(record: Any) -> Any:
    if not isinstance(record, dict):
        return record
    # YAML turns unquoted ISO dates into date objects
    return {
        key: value.isoformat() if isinstance(value, date) else value
        for key, value in record.items()
    }


def _extract_records(raw: Any, path: Path) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("events", [])
    if not isinstance(raw, list):
        raise EventSourceError(f"Events file must contain a list of events: {path}")
    return [_normalize_record(record) for record in raw]


class LocalFileEventSource:
    """Reads event records from a YAML or JSON file."""

    def __init__(self, *, path: Path, source_name: str | None = None) -> None:
        self._path = Path(path)
        self._source_name = (source_name or "").strip() or self._path.stem or self._path.name

    @property
    def source_name(self) -> str:
        return self._source_name

    @property
    def path(self) -> Path:
        return self._path

    def get_events(self) -> list[CalendarEvent]:
        if not self._path.exists():
            return []
        if not self._path.is_file():
            raise EventSourceError(f"Configured events path is not a file: {self._path}")

        raw_text = _read_events_text(self._path)
        try:
            raw = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise EventSourceError(f"Unable to parse events file: {self._path}") from exc
        return coerce_events(_extract_records(raw, self._path))
