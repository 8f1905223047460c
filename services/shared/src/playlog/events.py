"""Canonical listening event and normalization of upstream payloads.

Upstream items arrive either as ``{"track": {...}, "played_at": "..."}`` or as a
bare track object. Both shapes are turned into a :class:`ListeningEvent` here so
nothing downstream has to care which one it got.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from playlog.spotify.models import SpotifyPlayHistoryItem

EventKey = tuple[str, datetime]


def to_utc_millis(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime truncated to milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) into aware UTC."""
    return to_utc_millis(datetime.fromisoformat(raw.strip().replace("Z", "+00:00")))


def format_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return to_utc_millis(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def datetime_to_unix_ms(dt: datetime) -> int:
    """Convert a datetime to Unix epoch milliseconds."""
    epoch = datetime(1970, 1, 1, tzinfo=UTC)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return (dt - epoch) // timedelta(milliseconds=1)


class ListeningEvent(BaseModel):
    """One observed play of an entity (track) at an exact moment.

    Immutable. Two events are the same event iff their :attr:`key` matches.
    """

    model_config = ConfigDict(frozen=True)

    entity_id: str
    occurred_at: datetime
    entity_name: str
    attribution_names: tuple[str, ...] = Field(default_factory=tuple)
    group_name: str | None = None
    duration_ms: int = 0
    popularity: int | None = None

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        return to_utc_millis(value)

    @property
    def key(self) -> EventKey:
        return (self.entity_id, self.occurred_at)

    @property
    def derived_date(self) -> date:
        """UTC calendar date of the play."""
        return self.occurred_at.date()

    @property
    def occurred_at_iso(self) -> str:
        return format_timestamp(self.occurred_at)

    @classmethod
    def from_play_history(cls, item: SpotifyPlayHistoryItem) -> "ListeningEvent":
        """Build from a typed recently-played item."""
        track = item.track
        if not track.id:
            raise ValueError(f"Play history item for {track.name!r} has no track id")
        return cls(
            entity_id=track.id,
            occurred_at=item.played_at,
            entity_name=track.name,
            attribution_names=tuple(a.name for a in track.artists),
            group_name=track.album.name if track.album else None,
            duration_ms=track.duration_ms or 0,
            popularity=track.popularity,
        )


def normalize_raw_item(raw: Mapping[str, Any], *, now: datetime | None = None) -> ListeningEvent:
    """Normalize one raw upstream item in either accepted shape.

    A missing ``played_at`` falls back to ``now`` (defaults to the current time).

    Raises:
        ValueError: If the item carries no track id or an unparseable timestamp.
    """
    track = raw.get("track") or raw
    if not isinstance(track, Mapping):
        raise ValueError("Item has no track object")

    track_id = track.get("id")
    if not track_id:
        raise ValueError(f"Item {track.get('name')!r} has no track id")

    played_at = raw.get("played_at")
    if isinstance(played_at, datetime):
        occurred_at = played_at
    elif isinstance(played_at, str) and played_at:
        occurred_at = parse_timestamp(played_at)
    else:
        occurred_at = now or datetime.now(UTC)

    album = track.get("album") or {}
    artists = track.get("artists") or []
    return ListeningEvent(
        entity_id=str(track_id),
        occurred_at=occurred_at,
        entity_name=str(track.get("name") or ""),
        attribution_names=tuple(str(a.get("name", "")) for a in artists if isinstance(a, Mapping)),
        group_name=album.get("name") if isinstance(album, Mapping) else None,
        duration_ms=int(track.get("duration_ms") or 0),
        popularity=track.get("popularity"),
    )
