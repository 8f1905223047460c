"""Event store backends and the factory that picks one from settings."""

from playlog.config.store import StoreSettings
from playlog.db.session import DatabaseManager
from playlog.store.base import EventStore
from playlog.store.flatfile import CsvEventStore
from playlog.store.sql import SqlEventStore


def create_event_store(settings: StoreSettings, db_manager: DatabaseManager | None = None) -> EventStore:
    """Build the backend named by ``settings.STORE_BACKEND``."""
    if settings.STORE_BACKEND == "csv":
        return CsvEventStore(settings.CSV_PATH)
    if db_manager is None:
        raise ValueError("The database backend needs a DatabaseManager")
    return SqlEventStore(db_manager)


__all__ = [
    "CsvEventStore",
    "EventStore",
    "SqlEventStore",
    "create_event_store",
]
