"""Database-backed event store (SQLite or PostgreSQL via SQLAlchemy async)."""

import logging
from collections.abc import Sequence
from datetime import UTC, date
from typing import Any

from sqlalchemy import Select, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from playlog.db.models import ListeningEventRow
from playlog.db.session import DatabaseManager
from playlog.events import EventKey, ListeningEvent
from playlog.exceptions import StoreError
from playlog.store.base import select_novel

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = ["entity_id", "occurred_at"]


def _to_row(event: ListeningEvent) -> dict[str, Any]:
    return {
        "entity_id": event.entity_id,
        # Strip tzinfo to match the DB's naive-UTC convention.
        "occurred_at": event.occurred_at.replace(tzinfo=None),
        "played_date": event.derived_date,
        "entity_name": event.entity_name,
        "attribution_names": list(event.attribution_names),
        "group_name": event.group_name,
        "duration_ms": event.duration_ms,
        "popularity": event.popularity,
    }


def _from_row(row: ListeningEventRow) -> ListeningEvent:
    return ListeningEvent(
        entity_id=row.entity_id,
        occurred_at=row.occurred_at.replace(tzinfo=UTC),
        entity_name=row.entity_name,
        attribution_names=tuple(row.attribution_names or ()),
        group_name=row.group_name,
        duration_ms=row.duration_ms,
        popularity=row.popularity,
    )


class SqlEventStore:
    """Event store on the ``listening_events`` table.

    Dedup is enforced by the unique constraint on (entity_id, occurred_at):
    each row goes in with ``INSERT ... ON CONFLICT DO NOTHING`` and the added
    count is the sum of the per-statement row counts. One merge is one
    transaction.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db = db_manager

    def _insert(self, values: dict[str, Any]) -> Any:
        dialect = self._db.dialect_name
        if dialect == "postgresql":
            stmt = postgresql.insert(ListeningEventRow)
        elif dialect == "sqlite":
            stmt = sqlite.insert(ListeningEventRow)
        else:
            raise StoreError(f"Unsupported database dialect: {dialect}")
        return stmt.values(**values).on_conflict_do_nothing(index_elements=_CONFLICT_COLUMNS)

    async def merge(self, events: Sequence[ListeningEvent]) -> int:
        seen: set[EventKey] = set()
        candidates = select_novel(events, seen)
        if not candidates:
            return 0

        added = 0
        try:
            async with self._db.session() as session:
                for event in candidates:
                    result = await session.execute(self._insert(_to_row(event)))
                    added += max(result.rowcount or 0, 0)  # type: ignore[attr-defined]
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to merge {len(candidates)} events: {exc}") from exc

        logger.debug("Merged batch of %d events: %d added", len(events), added)
        return added

    async def _fetch(self, stmt: Select[tuple[ListeningEventRow]]) -> list[ListeningEvent]:
        stmt = stmt.order_by(ListeningEventRow.occurred_at.desc(), ListeningEventRow.id.desc())
        try:
            async with self._db.session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read events: {exc}") from exc
        return [_from_row(row) for row in rows]

    async def scan_all(self) -> list[ListeningEvent]:
        return await self._fetch(select(ListeningEventRow))

    async def scan_date_range(self, start: date, end: date) -> list[ListeningEvent]:
        return await self._fetch(
            select(ListeningEventRow).where(
                ListeningEventRow.played_date >= start,
                ListeningEventRow.played_date <= end,
            )
        )

    async def scan_date(self, day: date) -> list[ListeningEvent]:
        return await self._fetch(select(ListeningEventRow).where(ListeningEventRow.played_date == day))

    async def scan_recent(self, limit: int) -> list[ListeningEvent]:
        return await self._fetch(select(ListeningEventRow).limit(limit))

    async def _scalar(self, stmt: Select[tuple[int]]) -> int:
        try:
            async with self._db.session() as session:
                return int((await session.execute(stmt)).scalar() or 0)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to query events: {exc}") from exc

    async def count(self) -> int:
        return await self._scalar(select(func.count(ListeningEventRow.id)))

    async def total_duration_ms(self) -> int:
        return await self._scalar(select(func.coalesce(func.sum(ListeningEventRow.duration_ms), 0)))

    async def clear(self) -> None:
        try:
            async with self._db.session() as session:
                await session.execute(delete(ListeningEventRow))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to clear events: {exc}") from exc
        logger.info("Cleared all listening events")
