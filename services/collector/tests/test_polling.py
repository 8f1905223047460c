"""Tests for PollingService."""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from collector.fetcher import RecentlyPlayedFetcher
from collector.polling import PollingService, PollResult
from playlog.history import HistoryService
from playlog.spotify.exceptions import SpotifyServerError
from playlog.spotify.models import RecentlyPlayedResponse

PageFactory = Callable[..., RecentlyPlayedResponse]


def _fetcher(*responses: RecentlyPlayedResponse | Exception) -> RecentlyPlayedFetcher:
    client = MagicMock()
    client.get_recently_played = AsyncMock(side_effect=list(responses))
    return RecentlyPlayedFetcher(client_factory=lambda token: client)


async def test_poll_merges_fetched_events(history: HistoryService, make_page: PageFactory) -> None:
    service = PollingService(_fetcher(make_page(5)), history)

    result = await service.poll("token")

    assert result == PollResult(fetched=5, added=5)
    assert len(await history.get_all_events()) == 5


async def test_repeated_poll_adds_nothing_new(history: HistoryService, make_page: PageFactory) -> None:
    service = PollingService(_fetcher(make_page(5), make_page(5)), history)

    await service.poll("token")
    second = await service.poll("token")

    assert second == PollResult(fetched=5, added=0)
    assert len(await history.get_all_events()) == 5


async def test_overlapping_window_adds_only_new_plays(history: HistoryService, make_page: PageFactory) -> None:
    service = PollingService(_fetcher(make_page(3), make_page(6)), history)

    await service.poll("token")
    second = await service.poll("token")

    assert second == PollResult(fetched=6, added=3)


async def test_empty_fetch_skips_merge(make_page: PageFactory) -> None:
    history = MagicMock(spec=HistoryService)
    history.merge_events = AsyncMock()
    service = PollingService(_fetcher(make_page(0)), history)

    result = await service.poll("token")

    assert result == PollResult(fetched=0, added=0)
    history.merge_events.assert_not_awaited()


async def test_fetch_error_writes_nothing(history: HistoryService, make_page: PageFactory) -> None:
    service = PollingService(_fetcher(make_page(50), SpotifyServerError(500)), history)

    with pytest.raises(SpotifyServerError):
        await service.poll("token")
    assert await history.get_all_events() == []


async def test_poll_refreshes_aggregate(history: HistoryService, make_page: PageFactory) -> None:
    service = PollingService(_fetcher(make_page(4)), history)

    await service.poll("token")

    snapshot = await history.get_aggregate_snapshot()
    assert snapshot.event_count == 4
    assert snapshot.total_duration_ms == 4 * 180_000
