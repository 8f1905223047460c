"""Shared fixtures: event stores on a temporary SQLite file or CSV file."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from playlog.config import DatabaseSettings
from playlog.db import DatabaseManager
from playlog.history import HistoryService
from playlog.store import CsvEventStore, EventStore, SqlEventStore


@pytest.fixture
async def db_manager(tmp_path: Path) -> AsyncGenerator[DatabaseManager]:
    manager = DatabaseManager(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'playlog.db'}"))
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
def csv_store(tmp_path: Path) -> CsvEventStore:
    return CsvEventStore(tmp_path / "data" / "history.csv")


@pytest.fixture(params=["database", "csv"])
async def event_store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[EventStore]:
    """Each test using this fixture runs once per backend."""
    if request.param == "csv":
        yield CsvEventStore(tmp_path / "history.csv")
        return
    manager = DatabaseManager(DatabaseSettings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"))
    await manager.create_schema()
    yield SqlEventStore(manager)
    await manager.dispose()


@pytest.fixture
def history(event_store: EventStore) -> HistoryService:
    return HistoryService(event_store)
