"""Spotify API client and models."""

from playlog.spotify.client import SpotifyClient
from playlog.spotify.exceptions import (
    TRANSIENT_ERRORS,
    SpotifyAuthError,
    SpotifyClientError,
    SpotifyNetworkError,
    SpotifyRateLimitError,
    SpotifyRequestError,
    SpotifyServerError,
)

__all__ = [
    "TRANSIENT_ERRORS",
    "SpotifyClient",
    "SpotifyAuthError",
    "SpotifyClientError",
    "SpotifyNetworkError",
    "SpotifyRateLimitError",
    "SpotifyRequestError",
    "SpotifyServerError",
]
