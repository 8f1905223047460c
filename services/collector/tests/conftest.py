"""Shared test configuration and fixtures for collector tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from collector.settings import CollectorSettings
from playlog.history import HistoryService
from playlog.spotify.models import (
    RecentlyPlayedResponse,
    SpotifyArtistSimplified,
    SpotifyPlayHistoryItem,
    SpotifyTrack,
)
from playlog.store import CsvEventStore

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def settings() -> CollectorSettings:
    return CollectorSettings(
        SPOTIFY_CLIENT_ID="test-client-id",
        SPOTIFY_CLIENT_SECRET="test-client-secret",
        SPOTIFY_REFRESH_TOKEN="test-refresh-token",
        COLLECTOR_INTERVAL_SECONDS=3600,
        RUN_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def history(tmp_path: Path) -> HistoryService:
    return HistoryService(CsvEventStore(tmp_path / "history.csv"))


def play_item(track_id: str | None, played_at: datetime, *, name: str = "Song") -> SpotifyPlayHistoryItem:
    return SpotifyPlayHistoryItem(
        track=SpotifyTrack(
            id=track_id,
            name=name,
            duration_ms=180_000,
            artists=[SpotifyArtistSimplified(name="Artist")],
        ),
        played_at=played_at,
    )


@pytest.fixture
def make_page() -> Callable[..., RecentlyPlayedResponse]:
    """Build a recently-played page of ``count`` plays ending one minute apart before ``newest``."""

    def _make(count: int, newest: datetime = BASE_TIME, *, prefix: str = "t") -> RecentlyPlayedResponse:
        return RecentlyPlayedResponse(
            items=[play_item(f"{prefix}{i}", newest - timedelta(minutes=i)) for i in range(count)],
        )

    return _make
