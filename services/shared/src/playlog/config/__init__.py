"""Shared configuration."""

from playlog.config.constants import DEFAULT_DATABASE_URL
from playlog.config.database import DatabaseSettings
from playlog.config.store import StoreSettings

__all__ = [
    "DEFAULT_DATABASE_URL",
    "DatabaseSettings",
    "StoreSettings",
]
