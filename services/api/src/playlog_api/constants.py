"""Centralized constants for the API service."""

from dataclasses import dataclass

# --- Application metadata ---

APP_TITLE = "Playlog API"
APP_DESCRIPTION = "Listening history, aggregates, backup/restore and sync control"
APP_VERSION = "0.1.0"


# --- Route configuration ---


@dataclass(frozen=True, slots=True)
class _Route:
    """A route prefix paired with its OpenAPI tag."""

    prefix: str
    tag: str


class Routes:
    """API route prefixes and tags."""

    HISTORY = _Route("/history", "history")
    SYNC = _Route("/sync", "sync")
    HEALTH = "/healthz"


# --- Export / import ---

EXPORT_FILENAME_TEMPLATE = "spotify_history_{date}.csv"
CSV_MEDIA_TYPE = "text/csv"

# Default configuration values
DEFAULT_CORS_ALLOWED_ORIGINS = "http://localhost:5173"
DEFAULT_IMPORT_MAX_SIZE_MB = 10
