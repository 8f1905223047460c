"""Polling service: one fetch of recently-played merged into the history."""

import logging
from dataclasses import dataclass

from collector.fetcher import RecentlyPlayedFetcher
from playlog.history import HistoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PollResult:
    fetched: int
    added: int


class PollingService:
    """Fetches everything the upstream exposes and merges it into the history."""

    def __init__(self, fetcher: RecentlyPlayedFetcher, history: HistoryService) -> None:
        self._fetcher = fetcher
        self._history = history

    async def poll(self, access_token: str) -> PollResult:
        """Run one fetch and merge. Fetch errors propagate before any write."""
        events = await self._fetcher.fetch_all(access_token)
        if not events:
            logger.info("Nothing to merge")
            return PollResult(fetched=0, added=0)

        added = await self._history.merge_events(events)
        logger.info("Poll complete: %d fetched, %d added", len(events), added)
        return PollResult(fetched=len(events), added=added)
