"""Listening event table."""

from datetime import date, datetime

from sqlalchemy import JSON, BigInteger, Date, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from playlog.db.base import Base, utc_now


class ListeningEventRow(Base):
    """One stored listening event (unique on entity_id, occurred_at).

    ``occurred_at`` is stored as naive UTC. Rows are never updated.
    """

    __tablename__ = "listening_events"

    # INTEGER on SQLite so the key aliases rowid and autoincrements.
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    played_date: Mapped[date] = mapped_column(Date, nullable=False)
    entity_name: Mapped[str] = mapped_column(Text, nullable=False)
    attribution_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    group_name: Mapped[str | None] = mapped_column(Text)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    popularity: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("entity_id", "occurred_at", name="uq_listening_events_entity_occurred"),
        Index("ix_listening_events_played_date", "played_date"),
        Index("ix_listening_events_occurred_at", "occurred_at"),
    )
