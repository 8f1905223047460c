"""Pydantic models for Spotify Web API responses.

These are pure data models matching Spotify's JSON structure.
No DB or auth dependencies.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SpotifyArtistSimplified(BaseModel):
    """Simplified artist object (embedded in tracks, albums)."""

    id: str | None = None
    name: str
    uri: str | None = None


class SpotifyAlbumSimplified(BaseModel):
    """Simplified album object (embedded in tracks)."""

    id: str | None = None
    name: str
    uri: str | None = None
    album_type: str | None = None
    release_date: str | None = None


class SpotifyTrack(BaseModel):
    """Track object as embedded in play history items."""

    id: str | None = None
    name: str
    uri: str | None = None
    duration_ms: int | None = None
    explicit: bool | None = None
    popularity: int | None = None
    is_local: bool = False
    artists: list[SpotifyArtistSimplified] = Field(default_factory=list)
    album: SpotifyAlbumSimplified | None = None


class SpotifyContext(BaseModel):
    """Playback context (playlist, album, artist, etc.)."""

    type: str | None = None
    uri: str | None = None


class SpotifyPlayHistoryItem(BaseModel):
    """Single item from /me/player/recently-played."""

    track: SpotifyTrack
    played_at: datetime
    context: SpotifyContext | None = None


class SpotifyCursors(BaseModel):
    """Cursors for cursor-based paging."""

    after: str | None = None
    before: str | None = None


class RecentlyPlayedResponse(BaseModel):
    """Response from GET /me/player/recently-played."""

    items: list[SpotifyPlayHistoryItem] = Field(default_factory=list)
    next: str | None = None
    cursors: SpotifyCursors | None = None
    limit: int | None = None
    href: str | None = None


class SpotifyTokenResponse(BaseModel):
    """Response from the accounts service token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    refresh_token: str | None = None
    scope: str | None = None
