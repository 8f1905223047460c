"""Collector service configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class CollectorSettings(BaseSettings):
    """Collector service configuration."""

    # Spotify credentials
    SPOTIFY_CLIENT_ID: str = ""
    SPOTIFY_CLIENT_SECRET: str = ""
    SPOTIFY_REFRESH_TOKEN: str = ""

    # Polling
    COLLECTOR_INTERVAL_SECONDS: int = 180
    TOKEN_EXPIRY_BUFFER_SECONDS: int = 60
    RUN_TIMEOUT_SECONDS: float = 300.0

    # Upstream paging
    FETCH_PAGE_SIZE: int = 50
    FETCH_MAX_PAGES: int = 1000
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    model_config = {"env_prefix": ""}
