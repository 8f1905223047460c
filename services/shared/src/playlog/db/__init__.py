"""Shared database package -- convenience re-exports.

Importing this module registers all models with Base.metadata.
"""

from playlog.db.base import Base
from playlog.db.models import ListeningEventRow
from playlog.db.session import DatabaseManager

__all__ = [
    "Base",
    "DatabaseManager",
    "ListeningEventRow",
]
