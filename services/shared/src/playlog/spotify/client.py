"""Spotify Web API async client with retry and rate-limit handling."""

import asyncio
import logging
import math

import httpx

from playlog.spotify.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    RECENTLY_PLAYED_MAX_LIMIT,
    RECENTLY_PLAYED_URL,
)
from playlog.spotify.exceptions import (
    SpotifyAuthError,
    SpotifyNetworkError,
    SpotifyRateLimitError,
    SpotifyRequestError,
    SpotifyServerError,
)
from playlog.spotify.models import RecentlyPlayedResponse

logger = logging.getLogger(__name__)


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header; None for absent or HTTP-date values."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0) if math.isfinite(seconds) else None


class SpotifyClient:
    """Async Spotify Web API client.

    Takes an access_token per-instance (stateless re: auth). Handles 429 backoff,
    5xx and transport-error retries internally. A 401 is raised as
    SpotifyAuthError without a retry; the caller decides how to recover.
    """

    def __init__(
        self,
        access_token: str,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._access_token = access_token
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._request_timeout = request_timeout

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        """Send an HTTP request with retry logic for 429/5xx/transport errors.

        Retry loop:
        1. Send request with Bearer token
        2. If 2xx: return response
        3. If 401: raise SpotifyAuthError
        4. If 429: sleep(Retry-After seconds or exponential backoff), continue
        5. If 5xx or timeout/connection error: sleep(exponential backoff), continue
        6. If other 4xx: raise SpotifyRequestError immediately
        """
        last_status = 0
        last_retry_after: float | None = None
        last_transport_error: httpx.TransportError | None = None

        for attempt in range(self._max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self._request_timeout) as client:
                    response = await client.request(
                        method,
                        url,
                        params=params,
                        headers={"Authorization": f"Bearer {self._access_token}"},
                    )
            except httpx.TransportError as exc:
                last_status = 0
                last_transport_error = exc
                if attempt < self._max_retries:
                    delay = self._retry_base_delay * (2**attempt)
                    logger.warning(
                        "Spotify request failed (%s), sleeping %.1fs (attempt %d/%d)",
                        type(exc).__name__,
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                continue

            last_status = response.status_code

            if 200 <= response.status_code < 300:
                return response

            if response.status_code == 401:
                raise SpotifyAuthError("Spotify returned 401 Unauthorized")

            # 429 Rate Limited
            if response.status_code == 429:
                retry_after_header = response.headers.get("Retry-After")
                delay = _parse_retry_after(retry_after_header)
                if delay is None:
                    delay = self._retry_base_delay * (2**attempt)
                last_retry_after = delay
                if attempt < self._max_retries:
                    logger.warning(
                        "Spotify rate limited (429), sleeping %.1fs (attempt %d/%d)",
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            # 5xx Server Error
            elif response.status_code >= 500:
                if attempt < self._max_retries:
                    delay = self._retry_base_delay * (2**attempt)
                    logger.warning(
                        "Spotify server error %d, sleeping %.1fs (attempt %d/%d)",
                        response.status_code,
                        delay,
                        attempt + 1,
                        self._max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue

            # Other 4xx are not retried
            else:
                detail = f"HTTP {response.status_code}"
                try:
                    error_body = response.json()
                    detail = error_body.get("error", {}).get("message", detail)
                except (ValueError, AttributeError):
                    if response.text:
                        detail = response.text[:200]
                raise SpotifyRequestError(status_code=response.status_code, detail=detail)

        # Exhausted retries
        if last_status == 429:
            raise SpotifyRateLimitError(retry_after=last_retry_after)
        if last_transport_error is not None and last_status == 0:
            raise SpotifyNetworkError(f"Spotify request failed: {last_transport_error!r}") from last_transport_error
        raise SpotifyServerError(status_code=last_status, detail="Max retries exhausted")

    async def get_recently_played(
        self,
        *,
        limit: int = RECENTLY_PLAYED_MAX_LIMIT,
        before: int | None = None,
        after: int | None = None,
    ) -> RecentlyPlayedResponse:
        """GET /me/player/recently-played."""
        params: dict[str, str | int] = {"limit": min(limit, RECENTLY_PLAYED_MAX_LIMIT)}
        if before is not None:
            params["before"] = before
        if after is not None:
            params["after"] = after
        response = await self._request("GET", RECENTLY_PLAYED_URL, params=params)
        return RecentlyPlayedResponse.model_validate(response.json())
