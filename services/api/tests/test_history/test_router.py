"""Tests for history REST endpoints."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from playlog.exceptions import StoreError
from playlog.history import HistoryService
from playlog.store import CsvEventStore
from playlog_api.dependencies import get_history
from playlog_api.main import PlaylogApp
from playlog_api.settings import AppSettings, get_settings

HEADER = "date,trackId,trackName,artistName,albumName,durationMs,popularity,timestamp"


def _test_settings() -> AppSettings:
    return AppSettings(SCHEDULER_ENABLED=False, IMPORT_MAX_SIZE_MB=1)


def _item(track_id: str, played_at: str, duration_ms: int = 180000) -> dict[str, object]:
    return {
        "track": {
            "id": track_id,
            "name": f"Track {track_id}",
            "duration_ms": duration_ms,
            "popularity": 30,
            "artists": [{"name": "Artist"}],
            "album": {"name": "Album"},
        },
        "played_at": played_at,
    }


@pytest.fixture
def history(tmp_path: Path) -> HistoryService:
    return HistoryService(CsvEventStore(tmp_path / "history.csv"))


@pytest.fixture
def client(history: HistoryService) -> Generator[TestClient]:
    app = PlaylogApp(_test_settings()).app
    app.dependency_overrides[get_history] = lambda: history
    app.dependency_overrides[get_settings] = _test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def _seed(client: TestClient) -> None:
    response = client.post(
        "/history/events",
        json={
            "items": [
                _item("X", "2024-01-15T09:00:00Z"),
                _item("X", "2024-01-15T09:10:00Z", 120000),
                _item("Y", "2024-01-16T09:00:00Z", 300000),
            ]
        },
    )
    assert response.status_code == 200
    assert response.json() == {"added": 3}


def test_merge_is_idempotent(client: TestClient) -> None:
    _seed(client)
    response = client.post("/history/events", json={"items": [_item("X", "2024-01-15T09:00:00.000Z")]})
    assert response.json() == {"added": 0}


def test_merge_rejects_item_without_id(client: TestClient) -> None:
    response = client.post("/history/events", json={"items": [{"track": {"name": "local"}}]})
    assert response.status_code == 400
    assert "item 0" in response.json()["detail"]


def test_list_events_newest_first(client: TestClient) -> None:
    _seed(client)
    body = client.get("/history/events").json()
    assert [e["track_id"] for e in body] == ["Y", "X", "X"]
    assert body[0]["date"] == "2024-01-16"
    assert body[0]["artist_names"] == ["Artist"]


def test_list_events_in_range(client: TestClient) -> None:
    _seed(client)
    body = client.get("/history/events", params={"start": "2024-01-15", "end": "2024-01-15"}).json()
    assert [e["track_id"] for e in body] == ["X", "X"]
    body = client.get("/history/events", params={"start": "2024-01-16"}).json()
    assert [e["track_id"] for e in body] == ["Y"]


def test_events_on_date_and_today(client: TestClient) -> None:
    _seed(client)
    assert len(client.get("/history/events/2024-01-16").json()) == 1
    assert client.get("/history/events/today").status_code == 200
    assert client.get("/history/events/not-a-date").status_code == 422


def test_snapshot(client: TestClient) -> None:
    assert client.get("/history/snapshot").json()["event_count"] == 0
    _seed(client)

    body = client.get("/history/snapshot").json()
    assert body["play_count_by_entity"] == {"X": 2, "Y": 1}
    assert body["total_duration_ms"] == 600000
    assert body["minutes_by_date"] == [
        {"date": "2024-01-16", "minutes": 5},
        {"date": "2024-01-15", "minutes": 5},
    ]
    assert client.get("/history/snapshot", params={"refresh": True}).json()["event_count"] == 3


def test_listening_time_and_statistics(client: TestClient) -> None:
    _seed(client)
    assert client.get("/history/listening-time").json() == {
        "total_ms": 600000,
        "total_minutes": 10,
        "total_hours": 0,
        "total_days": 0,
    }
    stats = client.get("/history/statistics").json()
    assert stats["total_records"] == 3
    assert stats["unique_tracks"] == 2
    assert stats["unique_dates"] == 2


def test_clear(client: TestClient) -> None:
    _seed(client)
    response = client.delete("/history/events")
    assert response.json()["success"] is True
    assert client.get("/history/events").json() == []


def test_export_then_import_is_noop(client: TestClient) -> None:
    _seed(client)
    export = client.get("/history/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=spotify_history_" in export.headers["content-disposition"]
    assert export.text.splitlines()[0] == HEADER

    response = client.post("/history/import", content=export.content, headers={"Content-Type": "text/csv"})
    assert response.status_code == 200
    assert response.json() == {"added": 0}
    assert len(client.get("/history/events").json()) == 3


def test_import_adds_new_rows(client: TestClient) -> None:
    payload = f"{HEADER}\n2024-01-20,Z,Song,A; B,Album,1000,5,2024-01-20T08:00:00.000Z\n"
    response = client.post("/history/import", content=payload, headers={"Content-Type": "text/csv"})
    assert response.json() == {"added": 1}
    [event] = client.get("/history/events").json()
    assert event["artist_names"] == ["A", "B"]


def test_import_malformed_returns_400(client: TestClient) -> None:
    response = client.post("/history/import", content="name,plays\nfoo,1\n")
    assert response.status_code == 400
    assert "trackId" in response.json()["detail"]


def test_import_too_large_returns_413(client: TestClient) -> None:
    payload = HEADER + "\n" + "x" * (1024 * 1024 + 1)
    response = client.post("/history/import", content=payload)
    assert response.status_code == 413


def test_store_failure_returns_500(client: TestClient) -> None:
    broken = AsyncMock(spec=HistoryService)
    broken.get_all_events.side_effect = StoreError("disk gone")
    client.app.dependency_overrides[get_history] = lambda: broken  # type: ignore[attr-defined]

    response = client.get("/history/events")
    assert response.status_code == 500
    assert "disk gone" in response.json()["detail"]


def test_request_id_header(client: TestClient) -> None:
    response = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"] == "abc123"
    assert client.get("/healthz").headers["X-Request-ID"]
