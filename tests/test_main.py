from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from couplecal.main import app
from couplecal.settings import load_settings


@pytest.fixture
def events_path(tmp_path):
    path = tmp_path / "events.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "dinner",
                    "title": "Dinner",
                    "date": "2025-07-21",
                    "category": {"id": "date", "name": "Date", "color": "#ff6b6b"},
                },
                {
                    "id": "trip",
                    "title": "Trip",
                    "date": "2025-08-09",
                    "endDate": "2025-08-11",
                    "category": {"id": "travel", "name": "Travel", "color": "#6c5ce7"},
                },
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def client(tmp_path, monkeypatch, events_path):
    config_path = tmp_path / "couplecal.yaml"
    config_path.write_text(f"events:\n  path: {events_path}\n", encoding="utf-8")
    monkeypatch.setenv("COUPLECAL_CONFIG_PATH", str(config_path))
    monkeypatch.setenv("COUPLECAL_ENV", "test")
    load_settings.cache_clear()

    with TestClient(app) as test_client:
        yield test_client

    load_settings.cache_clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["environment"] == "test"
    assert payload["event_count"] == 2
    assert payload["scheduler_running"] is True


def test_markings_for_loaded_events(client):
    response = client.get("/api/markings", params={"reference_date": "2025-07-15", "selected_date": "2025-07-21"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["date_range"] == {"start": "2025-06-01", "end": "2025-08-31"}
    assert payload["processed_event_count"] == 2
    assert len(payload["marked_dates"]) == 92
    selected = payload["marked_dates"]["2025-07-21"]
    assert selected["selected"] is True
    assert selected["indicators"] == ["#ff6b6b"]
    assert payload["marked_dates"]["2025-08-10"]["background"]["border_color"] == "#6c5ce7"


def test_markings_reject_bad_reference_date(client):
    response = client.get("/api/markings", params={"reference_date": "July"})

    assert response.status_code == 422


def test_post_markings_with_inline_events(client):
    response = client.post(
        "/api/markings",
        json={
            "events": [
                {"id": "x", "date": "2025-01-31", "endDate": "2025-02-02", "category": {"color": "#000000"}},
                {"id": "broken", "date": "soon", "category": {"color": "#000000"}},
                "junk",
            ],
            "reference_date": "2025-01-15",
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["date_range"] == {"start": "2024-12-01", "end": "2025-02-28"}
    assert payload["processed_event_count"] == 1
    assert payload["marked_dates"]["2025-02-01"]["indicators"] == ["#000000"]


def test_cache_stats_after_repeated_requests(client):
    client.post("/api/cache/clear")
    params = {"reference_date": "2025-07-15"}
    first = client.get("/api/markings", params=params).json()
    second = client.get("/api/markings", params=params).json()

    stats = client.get("/api/cache/stats").json()

    assert first["marked_dates"] == second["marked_dates"]
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.5


def test_cache_debug_and_invalidate_range(client):
    client.post("/api/cache/clear")
    client.get("/api/markings", params={"reference_date": "2025-07-15"})

    debug = client.get("/api/cache/debug").json()
    assert debug["stats"]["size"] == 1

    response = client.post("/api/cache/invalidate-range", params={"reference_date": "2025-07-15"})
    assert response.json()["removed"] == 1
    assert response.json()["cache"]["size"] == 0


def test_range_endpoint(client):
    payload = client.get("/api/range", params={"reference_date": "2024-12-31"}).json()

    assert payload == {"start": "2024-11-01", "end": "2025-01-31", "label": "2024-11-01 to 2025-01-31"}


def test_date_info_endpoint(client):
    payload = client.get("/api/dates/2025-05-03").json()

    assert payload["date_type"] == "holiday"
    assert payload["holiday_name"] == "Constitution Memorial Day"
    assert client.get("/api/dates/2025-02-30").status_code == 422


def test_diagnostics_report(client):
    client.get("/api/markings", params={"reference_date": "2025-07-15"})

    payload = client.get("/api/diagnostics/report").json()
    text = client.get("/api/diagnostics/report", params={"format": "text"}).text

    assert payload["summary"]["total_operations"] >= 1
    assert payload["recommendations"]
    assert "Recommendations" in text


def test_manual_events_refresh(client, events_path):
    events_path.write_text("[]", encoding="utf-8")

    response = client.post("/api/events/refresh")

    assert response.status_code == 200
    assert response.json()["event_count"] == 0
    assert client.get("/health").json()["event_count"] == 0


def test_manual_events_refresh_reports_source_errors(client, events_path):
    events_path.write_text("{not: [valid", encoding="utf-8")

    response = client.post("/api/events/refresh")

    assert response.status_code == 502
