"""Sync run lifecycle tracking: start, complete, skip and fail runs in memory."""

import enum
import itertools
import logging
from collections import deque
from datetime import UTC, datetime

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50


class SyncRunStatus(enum.StrEnum):
    RUNNING = "running"
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


class FailureKind(enum.StrEnum):
    """How a failed run is classified and recovered from."""

    CREDENTIAL_UNAVAILABLE = "credential_unavailable"
    CREDENTIAL_EXPIRED = "credential_expired"
    TRANSIENT = "transient"
    STORE = "store"
    UNKNOWN = "unknown"


class SyncRun(BaseModel):
    """One fetch-and-merge run, scheduled or manual."""

    id: int
    trigger: str
    status: SyncRunStatus = SyncRunStatus.RUNNING
    started_at: datetime
    completed_at: datetime | None = None
    fetched: int = 0
    added: int = 0
    failure_kind: FailureKind | None = None
    error_message: str | None = None


class SyncRunTracker:
    """Keeps the most recent runs, newest last."""

    def __init__(self, max_runs: int = DEFAULT_HISTORY_SIZE) -> None:
        self._runs: deque[SyncRun] = deque(maxlen=max_runs)
        self._ids = itertools.count(1)

    def _new_run(self, trigger: str, status: SyncRunStatus) -> SyncRun:
        run = SyncRun(id=next(self._ids), trigger=trigger, status=status, started_at=datetime.now(UTC))
        self._runs.append(run)
        return run

    def start_run(self, trigger: str) -> SyncRun:
        """Record a new run with status=running."""
        run = self._new_run(trigger, SyncRunStatus.RUNNING)
        logger.info("Started %s sync run %d", trigger, run.id)
        return run

    def skip_run(self, trigger: str, reason: str) -> SyncRun:
        """Record a run that never started."""
        run = self._new_run(trigger, SyncRunStatus.SKIPPED)
        run.completed_at = run.started_at
        run.error_message = reason
        logger.info("Skipped %s sync run %d: %s", trigger, run.id, reason)
        return run

    def complete_run(self, run: SyncRun, *, fetched: int = 0, added: int = 0) -> None:
        """Mark a run as successfully completed with stats."""
        run.status = SyncRunStatus.SUCCESS
        run.completed_at = datetime.now(UTC)
        run.fetched = fetched
        run.added = added
        logger.info("Completed sync run %d: fetched=%d added=%d", run.id, fetched, added)

    def fail_run(self, run: SyncRun, kind: FailureKind, error_message: str) -> None:
        """Mark a run as failed with its classification."""
        run.status = SyncRunStatus.ERROR
        run.completed_at = datetime.now(UTC)
        run.failure_kind = kind
        run.error_message = error_message[:500]
        logger.warning("Sync run %d failed (%s): %s", run.id, kind.value, error_message)

    @property
    def last_run(self) -> SyncRun | None:
        return self._runs[-1] if self._runs else None

    def recent(self, limit: int | None = None) -> list[SyncRun]:
        """Most recent runs, newest first."""
        runs = list(reversed(self._runs))
        return runs if limit is None else runs[:limit]
