"""Database session management via DatabaseManager class."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Self

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from playlog.config.database import DatabaseSettings
from playlog.db.base import Base
from playlog.db.models import ListeningEventRow  # noqa: F401

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages async database engine and session lifecycle.

    Usage:
        db = DatabaseManager.from_env()
        await db.create_schema()

        async with db.session() as session:
            result = await session.execute(query)

        await db.dispose()
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._engine = create_async_engine(
            settings.database_url,
            echo=settings.echo,
            poolclass=NullPool if settings.use_null_pool else None,
            pool_pre_ping=settings.pool_pre_ping,
        )
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_env(cls) -> Self:
        """Create a DatabaseManager from environment variables."""
        return cls(DatabaseSettings())

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get a database session with automatic commit/rollback.

        Commits on success, rolls back on exception.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_schema(self) -> None:
        """Create missing tables (and the SQLite file's directory)."""
        url = make_url(self._settings.database_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready (%s)", url.get_backend_name())

    async def dispose(self) -> None:
        """Dispose of the engine and release all connections."""
        await self._engine.dispose()
