"""SQLAlchemy declarative base."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


def utc_now() -> datetime:
    """Return current UTC time as a naive datetime (the DB convention)."""
    return datetime.now(UTC).replace(tzinfo=None)
