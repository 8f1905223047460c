"""Token provider: supplies a valid Spotify access token, refreshing as needed."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

import httpx

from collector.settings import CollectorSettings
from playlog.exceptions import CredentialUnavailableError
from playlog.spotify.constants import SPOTIFY_TOKEN_URL
from playlog.spotify.models import SpotifyTokenResponse

logger = logging.getLogger(__name__)


class SpotifyTokenProvider:
    """Expiry-checked access-token cache for a single Spotify account.

    The long-lived refresh token comes from ``SPOTIFY_REFRESH_TOKEN`` or is
    handed over at runtime with :meth:`set_refresh_token`. Concurrent callers
    that find the cache stale share one refresh: the refresh runs under a lock
    and every waiter re-checks the cache once it gets the lock.
    """

    def __init__(self, settings: CollectorSettings) -> None:
        self._settings = settings
        self._refresh_token: str | None = settings.SPOTIFY_REFRESH_TOKEN or None
        self._access_token: str | None = None
        self._expires_at: datetime | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def has_credential(self) -> bool:
        """True when a token is cached or can be obtained by refreshing."""
        return self._cached_token() is not None or self._refresh_token is not None

    def _cached_token(self) -> str | None:
        if not self._access_token:
            return None
        if self._expires_at is None:
            return self._access_token
        buffer = timedelta(seconds=self._settings.TOKEN_EXPIRY_BUFFER_SECONDS)
        if self._expires_at > datetime.now(UTC) + buffer:
            return self._access_token
        return None

    async def get_valid_credential(self) -> str | None:
        """Return a usable access token, or ``None`` when none can be obtained."""
        token = self._cached_token()
        if token is not None:
            return token

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited.
            token = self._cached_token()
            if token is not None:
                return token
            if self._refresh_token is None:
                logger.info("No Spotify credential available")
                return None
            try:
                return await self._refresh()
            except (httpx.HTTPError, RuntimeError, ValueError) as exc:
                logger.warning("Spotify token refresh failed: %s", exc)
                return None

    async def require_credential(self) -> str:
        """Like :meth:`get_valid_credential` but raises when unavailable.

        Raises:
            CredentialUnavailableError: If no token could be obtained.
        """
        token = await self.get_valid_credential()
        if token is None:
            raise CredentialUnavailableError("No valid Spotify credential available")
        return token

    async def _refresh(self) -> str:
        """Exchange the refresh token for a new access token.

        Raises:
            RuntimeError: If the token endpoint returns an error.
        """
        async with httpx.AsyncClient(timeout=self._settings.REQUEST_TIMEOUT_SECONDS) as client:
            response = await client.post(
                SPOTIFY_TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self._refresh_token,
                    "client_id": self._settings.SPOTIFY_CLIENT_ID,
                    "client_secret": self._settings.SPOTIFY_CLIENT_SECRET,
                },
            )
            if response.status_code != 200:
                raise RuntimeError(f"Token refresh failed: HTTP {response.status_code}")

        data = SpotifyTokenResponse.model_validate(response.json())
        self._access_token = data.access_token
        self._expires_at = datetime.now(UTC) + timedelta(seconds=data.expires_in)
        if data.refresh_token:
            self._refresh_token = data.refresh_token
        logger.info("Refreshed Spotify access token (expires in %ds)", data.expires_in)
        return data.access_token

    def invalidate(self) -> None:
        """Drop the cached access token so the next call refreshes."""
        if self._access_token is not None:
            logger.info("Invalidating cached Spotify access token")
        self._access_token = None
        self._expires_at = None

    def set_access_token(self, token: str, expires_in: int | None = None) -> None:
        """Hand over an access token obtained elsewhere (e.g. a browser login)."""
        self._access_token = token
        self._expires_at = datetime.now(UTC) + timedelta(seconds=expires_in) if expires_in is not None else None

    def set_refresh_token(self, token: str) -> None:
        self._refresh_token = token
        self.invalidate()

    def clear(self) -> None:
        """Forget every credential, including the refresh token."""
        self._refresh_token = None
        self.invalidate()
        logger.info("Spotify credentials cleared")
