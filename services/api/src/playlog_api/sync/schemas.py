"""Pydantic request/response models for sync endpoints."""

from pydantic import BaseModel, Field

from collector.job_tracking import SyncRun
from collector.runloop import SchedulerState


class SyncStatusResponse(BaseModel):
    """Scheduler state, credential presence and the latest runs (newest first)."""

    state: SchedulerState
    scheduler_enabled: bool
    has_credential: bool
    last_run: SyncRun | None = None
    recent_runs: list[SyncRun] = Field(default_factory=list)


class TokenHandoverRequest(BaseModel):
    """Credential handed over by a front end that completed the OAuth flow."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = Field(default=None, ge=0)
