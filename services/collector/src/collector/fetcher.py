"""Paginated recently-played fetcher: walks backwards with the ``before`` cursor."""

import logging
from collections.abc import Callable

from playlog.events import ListeningEvent, datetime_to_unix_ms
from playlog.spotify.client import SpotifyClient
from playlog.spotify.constants import RECENTLY_PLAYED_MAX_LIMIT

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000

ClientFactory = Callable[[str], SpotifyClient]


class RecentlyPlayedFetcher:
    """Pulls every play the upstream currently exposes in one cycle.

    Each request after the first passes ``before`` = the oldest ``played_at``
    of the previous page, in epoch milliseconds. Paging continues only while
    pages come back full; a short or empty page ends the walk. ``max_pages``
    bounds the walk against an upstream that keeps returning full pages.

    Any client error aborts the whole fetch and propagates; nothing fetched
    so far is returned.
    """

    def __init__(
        self,
        *,
        page_size: int = RECENTLY_PLAYED_MAX_LIMIT,
        max_pages: int = DEFAULT_MAX_PAGES,
        client_factory: ClientFactory = SpotifyClient,
    ) -> None:
        self._page_size = min(page_size, RECENTLY_PLAYED_MAX_LIMIT)
        self._max_pages = max_pages
        self._client_factory = client_factory

    async def fetch_all(self, access_token: str) -> list[ListeningEvent]:
        """Fetch all available pages, newest first, without cross-page dedup."""
        client = self._client_factory(access_token)
        events: list[ListeningEvent] = []
        cursor: int | None = None
        pages = 0

        while True:
            if pages >= self._max_pages:
                logger.warning("Stopped paging after %d full pages; upstream kept returning data", pages)
                break

            response = await client.get_recently_played(limit=self._page_size, before=cursor)
            pages += 1
            items = response.items
            logger.debug("Page %d: %d items (before=%s)", pages, len(items), cursor)

            for item in items:
                if not item.track.id:
                    # Local files have no catalogue id and cannot be keyed.
                    logger.debug("Skipping play of %r without a track id", item.track.name)
                    continue
                events.append(ListeningEvent.from_play_history(item))

            if len(items) < self._page_size:
                break
            cursor = datetime_to_unix_ms(min(item.played_at for item in items))

        logger.info("Fetched %d events over %d page(s)", len(events), pages)
        return events
