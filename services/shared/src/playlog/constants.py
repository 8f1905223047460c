"""Centralized constants shared by the playlog services."""

import enum


class ServiceName(enum.StrEnum):
    """Service names used for logging and identification."""

    API = "api"
    COLLECTOR = "collector"


# Reference flat-file column order. Names match the original backup format so
# previously exported files can be imported unchanged.
CSV_COLUMNS: tuple[str, ...] = (
    "date",
    "trackId",
    "trackName",
    "artistName",
    "albumName",
    "durationMs",
    "popularity",
    "timestamp",
)
CSV_REQUIRED_HEADER_COLUMN = "trackId"
ATTRIBUTION_SEPARATOR = "; "

DEFAULT_CSV_PATH = "data/spotify_history.csv"
