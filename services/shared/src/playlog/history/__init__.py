"""History facade: the query surface over one event store."""

from playlog.history.schemas import HistoryStatistics, ListeningTime
from playlog.history.service import HistoryService

__all__ = ["HistoryService", "HistoryStatistics", "ListeningTime"]
