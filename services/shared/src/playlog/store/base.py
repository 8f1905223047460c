"""EventStore interface shared by every storage backend."""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Protocol, runtime_checkable

from playlog.events import EventKey, ListeningEvent


@runtime_checkable
class EventStore(Protocol):
    """Append-only, deduplicated log of listening events.

    Every scan returns events newest-first. ``merge`` is all-or-nothing and
    returns the number of events that were not already stored.
    """

    async def merge(self, events: Sequence[ListeningEvent]) -> int: ...

    async def scan_all(self) -> list[ListeningEvent]: ...

    async def scan_date_range(self, start: date, end: date) -> list[ListeningEvent]: ...

    async def scan_date(self, day: date) -> list[ListeningEvent]: ...

    async def scan_recent(self, limit: int) -> list[ListeningEvent]: ...

    async def count(self) -> int: ...

    async def total_duration_ms(self) -> int: ...

    async def clear(self) -> None: ...


def select_novel(events: Iterable[ListeningEvent], existing: set[EventKey]) -> list[ListeningEvent]:
    """Return events whose key is in neither ``existing`` nor earlier in ``events``.

    ``existing`` is updated in place with the keys that were accepted.
    """
    novel: list[ListeningEvent] = []
    for event in events:
        if event.key in existing:
            continue
        existing.add(event.key)
        novel.append(event)
    return novel


def newest_first(events: Iterable[ListeningEvent]) -> list[ListeningEvent]:
    return sorted(events, key=lambda e: e.occurred_at, reverse=True)
