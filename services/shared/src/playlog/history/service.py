"""History service: merges, scans, aggregates and backup/restore over one store."""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any, Self

from playlog.aggregation import AggregateCache, AggregateSnapshot
from playlog.config.store import StoreSettings
from playlog.db.session import DatabaseManager
from playlog.events import ListeningEvent, normalize_raw_item
from playlog.exceptions import MalformedImportError
from playlog.history.schemas import HistoryStatistics, ListeningTime
from playlog.store import create_event_store
from playlog.store.base import EventStore
from playlog.store.codec import decode_events, encode_events

logger = logging.getLogger(__name__)


class HistoryService:
    """Single implementation of the exposed history query surface.

    All writes (merges, imports, clears) go through one ``asyncio.Lock`` so
    the store's read-then-write dedup never races another writer in this
    process. Callers wait for the lock rather than being skipped. The
    aggregate snapshot is rebuilt after every write that changed the log.
    """

    def __init__(self, store: EventStore, *, aggregate_window: int | None = None) -> None:
        self._store = store
        self._write_lock = asyncio.Lock()
        self._aggregates = AggregateCache(self._load_working_set, window=aggregate_window)

    @classmethod
    def from_settings(cls, settings: StoreSettings, db_manager: DatabaseManager | None = None) -> Self:
        """Build over the backend named by ``settings``; ``AGGREGATE_WINDOW=0`` means the whole log."""
        return cls(create_event_store(settings, db_manager), aggregate_window=settings.AGGREGATE_WINDOW or None)

    @property
    def store(self) -> EventStore:
        return self._store

    async def _load_working_set(self) -> list[ListeningEvent]:
        window = self._aggregates.window
        if window is None:
            return await self._store.scan_all()
        return await self._store.scan_recent(window)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def merge_events(self, events: Sequence[ListeningEvent]) -> int:
        """Persist the novel events of ``events``; returns how many were added."""
        async with self._write_lock:
            # Dropped first so a failed refresh leaves a lazy recompute behind.
            self._aggregates.invalidate()
            added = await self._store.merge(events)
            if added:
                await self._aggregates.refresh()
        logger.info("Merged %d events (%d new)", len(events), added)
        return added

    async def merge_raw(self, items: Iterable[Mapping[str, Any]]) -> int:
        """Normalize raw upstream items (either shape) and merge them.

        The whole batch is normalized before anything is written.

        Raises:
            ValueError: If any item cannot be normalized.
        """
        events: list[ListeningEvent] = []
        for index, item in enumerate(items):
            try:
                events.append(normalize_raw_item(item))
            except ValueError as exc:
                raise ValueError(f"item {index}: {exc}") from exc
        return await self.merge_events(events)

    async def clear_all(self) -> None:
        async with self._write_lock:
            self._aggregates.invalidate()
            await self._store.clear()
            await self._aggregates.refresh()
        logger.info("History cleared")

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    async def get_all_events(self) -> list[ListeningEvent]:
        return await self._store.scan_all()

    async def get_events_in_date_range(self, start: date, end: date) -> list[ListeningEvent]:
        """Events whose UTC date falls within ``start``..``end`` inclusive."""
        if start > end:
            return []
        return await self._store.scan_date_range(start, end)

    async def get_events_on_date(self, day: date) -> list[ListeningEvent]:
        return await self._store.scan_date(day)

    async def get_todays_events(self, today: date | None = None) -> list[ListeningEvent]:
        return await self._store.scan_date(today or datetime.now(UTC).date())

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def get_aggregate_snapshot(self, *, refresh: bool = False) -> AggregateSnapshot:
        return await self._aggregates.get(refresh=refresh)

    async def get_listening_time(self) -> ListeningTime:
        return ListeningTime.from_ms(await self._store.total_duration_ms())

    async def get_statistics(self) -> HistoryStatistics:
        events = await self._store.scan_all()
        unique_dates = len({e.derived_date for e in events})
        return HistoryStatistics(
            total_records=len(events),
            unique_tracks=len({e.entity_id for e in events}),
            unique_dates=unique_dates,
            average_tracks_per_day=round(len(events) / unique_dates, 2) if unique_dates else 0.0,
        )

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    async def export_raw(self) -> str:
        """Serialize the whole log in the reference CSV format, newest first."""
        events = await self._store.scan_all()
        logger.info("Exporting %d events", len(events))
        return encode_events(events)

    async def import_raw(self, payload: str | bytes) -> int:
        """Merge a CSV backup into the log; returns how many events were new.

        The payload is fully decoded and validated before the store is touched.

        Raises:
            MalformedImportError: If the header or any row is invalid.
        """
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8-sig")
            except UnicodeDecodeError as exc:
                raise MalformedImportError(f"payload is not valid UTF-8: {exc}") from exc
        events = decode_events(payload)
        async with self._write_lock:
            self._aggregates.invalidate()
            added = await self._store.merge(events)
            await self._aggregates.refresh()
        logger.info("Imported %d rows (%d new)", len(events), added)
        return added
