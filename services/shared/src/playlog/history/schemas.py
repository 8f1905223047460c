"""Pydantic models returned by the history facade."""

from pydantic import BaseModel


class ListeningTime(BaseModel):
    """Listening time over the entire log. Every unit is floored."""

    total_ms: int
    total_minutes: int
    total_hours: int
    total_days: int

    @classmethod
    def from_ms(cls, total_ms: int) -> "ListeningTime":
        return cls(
            total_ms=total_ms,
            total_minutes=total_ms // 60_000,
            total_hours=total_ms // 3_600_000,
            total_days=total_ms // 86_400_000,
        )


class HistoryStatistics(BaseModel):
    """Record and date coverage of the log."""

    total_records: int
    unique_tracks: int
    unique_dates: int
    average_tracks_per_day: float
