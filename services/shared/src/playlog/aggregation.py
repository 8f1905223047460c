"""Aggregate statistics derived from the event log.

Every field of one snapshot is computed over the same working set: the most
recent ``window`` events by ``occurred_at`` (or every event when ``window`` is
``None``). Full-log listening totals are exposed separately by
:meth:`playlog.history.HistoryService.get_listening_time`.
"""

import logging
import math
from collections import Counter, defaultdict
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from playlog.events import ListeningEvent

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000


class DailyMinutes(BaseModel):
    """Minutes listened on one UTC date."""

    date: date
    minutes: int


class AggregateSnapshot(BaseModel):
    """Derived statistics for one working set. Never persisted."""

    event_count: int = 0
    window: int | None = None
    play_count_by_entity: dict[str, int] = Field(default_factory=dict)
    play_count_by_attribution: dict[str, int] = Field(default_factory=dict)
    total_duration_ms: int = 0
    minutes_by_date: list[DailyMinutes] = Field(default_factory=list)  # newest date first
    computed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def minutes_by_date_map(self) -> dict[date, int]:
        return {d.date: d.minutes for d in self.minutes_by_date}


def round_minutes(duration_ms: int) -> int:
    """Milliseconds to whole minutes, halves rounded up."""
    return math.floor(duration_ms / MS_PER_MINUTE + 0.5)


def working_set(events: Iterable[ListeningEvent], window: int | None) -> list[ListeningEvent]:
    """Most recent ``window`` events (all of them when ``window`` is None)."""
    ordered = sorted(events, key=lambda e: (e.occurred_at, e.entity_id), reverse=True)
    return ordered if window is None else ordered[:window]


def compute_snapshot(events: Iterable[ListeningEvent], window: int | None = None) -> AggregateSnapshot:
    """Aggregate ``events``; the result does not depend on input order."""
    selected = working_set(events, window)

    by_entity: Counter[str] = Counter()
    by_attribution: Counter[str] = Counter()
    ms_by_date: defaultdict[date, int] = defaultdict(int)
    total_ms = 0

    for event in selected:
        by_entity[event.entity_id] += 1
        # One increment per event for each contributing attribution.
        for name in dict.fromkeys(event.attribution_names):
            by_attribution[name] += 1
        ms_by_date[event.derived_date] += event.duration_ms
        total_ms += event.duration_ms

    return AggregateSnapshot(
        event_count=len(selected),
        window=window,
        play_count_by_entity=dict(sorted(by_entity.items())),
        play_count_by_attribution=dict(sorted(by_attribution.items())),
        total_duration_ms=total_ms,
        minutes_by_date=[
            DailyMinutes(date=day, minutes=round_minutes(ms)) for day, ms in sorted(ms_by_date.items(), reverse=True)
        ],
    )


class AggregateCache:
    """Holds the latest snapshot; a new one is built fully before it is swapped in."""

    def __init__(self, load_events: Callable[[], Awaitable[list[ListeningEvent]]], window: int | None = None) -> None:
        self._load_events = load_events
        self._window = window
        self._snapshot: AggregateSnapshot | None = None

    @property
    def window(self) -> int | None:
        return self._window

    async def refresh(self) -> AggregateSnapshot:
        snapshot = compute_snapshot(await self._load_events(), self._window)
        self._snapshot = snapshot
        logger.debug("Aggregate snapshot refreshed over %d events", snapshot.event_count)
        return snapshot

    async def get(self, *, refresh: bool = False) -> AggregateSnapshot:
        if refresh or self._snapshot is None:
            return await self.refresh()
        return self._snapshot

    def invalidate(self) -> None:
        self._snapshot = None
