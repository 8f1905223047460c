"""Application settings loaded from environment variables."""

import functools

from pydantic_settings import BaseSettings

from playlog_api.constants import DEFAULT_CORS_ALLOWED_ORIGINS, DEFAULT_IMPORT_MAX_SIZE_MB


class AppSettings(BaseSettings):
    """API service configuration.

    Store, database and collector settings are read by their own classes
    from the same environment.
    """

    # Run the collector loop inside the API process
    SCHEDULER_ENABLED: bool = True

    # CORS
    CORS_ALLOWED_ORIGINS: str = DEFAULT_CORS_ALLOWED_ORIGINS  # comma-separated origins

    # Backup uploads
    IMPORT_MAX_SIZE_MB: int = DEFAULT_IMPORT_MAX_SIZE_MB

    model_config = {"env_prefix": ""}


@functools.lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings singleton."""
    return AppSettings()
