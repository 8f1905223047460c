"""Pydantic request/response models for history endpoints."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from playlog.events import ListeningEvent


class EventOut(BaseModel):
    """One stored listening event."""

    track_id: str
    track_name: str
    artist_names: list[str]
    album_name: str | None
    duration_ms: int
    popularity: int | None
    played_at: datetime
    date: date

    @classmethod
    def from_event(cls, event: ListeningEvent) -> "EventOut":
        return cls(
            track_id=event.entity_id,
            track_name=event.entity_name,
            artist_names=list(event.attribution_names),
            album_name=event.group_name,
            duration_ms=event.duration_ms,
            popularity=event.popularity,
            played_at=event.occurred_at,
            date=event.derived_date,
        )


class MergeRequest(BaseModel):
    """Raw recently-played items, each either ``{track, played_at}`` or a bare track."""

    items: list[dict[str, Any]] = Field(default_factory=list)


class AddedResponse(BaseModel):
    added: int


class ActionResponse(BaseModel):
    """Generic response for mutation actions."""

    success: bool
    message: str
