"""Sync control endpoints: manual runs, scheduler status and credential hand-off."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from collector.job_tracking import SyncRun, SyncRunStatus
from collector.runloop import TRIGGER_MANUAL, CollectorRunLoop
from collector.tokens import SpotifyTokenProvider
from playlog.exceptions import CredentialUnavailableError
from playlog.spotify.exceptions import SpotifyClientError
from playlog_api.dependencies import get_run_loop, get_token_provider
from playlog_api.history.schemas import ActionResponse
from playlog_api.settings import AppSettings, get_settings
from playlog_api.sync.schemas import SyncStatusResponse, TokenHandoverRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SyncRun)
async def trigger_sync(run_loop: Annotated[CollectorRunLoop, Depends(get_run_loop)]) -> SyncRun:
    """Run one fetch-and-merge now. Rejected with 409 if a run is in progress."""
    try:
        run = await run_loop.run_once(trigger=TRIGGER_MANUAL, raise_errors=True)
    except CredentialUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (SpotifyClientError, TimeoutError) as exc:
        raise HTTPException(status_code=502, detail=f"Upstream failure: {exc}") from exc

    if run.status is SyncRunStatus.SKIPPED:
        raise HTTPException(status_code=409, detail=run.error_message or "Sync skipped")
    return run


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    run_loop: Annotated[CollectorRunLoop, Depends(get_run_loop)],
    token_provider: Annotated[SpotifyTokenProvider, Depends(get_token_provider)],
    settings: Annotated[AppSettings, Depends(get_settings)],
    limit: int = Query(default=10, ge=1, le=50),
) -> SyncStatusResponse:
    return SyncStatusResponse(
        state=run_loop.state,
        scheduler_enabled=settings.SCHEDULER_ENABLED,
        has_credential=token_provider.has_credential,
        last_run=run_loop.tracker.last_run,
        recent_runs=run_loop.tracker.recent(limit),
    )


@router.post("/token", response_model=ActionResponse)
async def set_token(
    body: TokenHandoverRequest,
    token_provider: Annotated[SpotifyTokenProvider, Depends(get_token_provider)],
) -> ActionResponse:
    """Hand over an access and/or refresh token obtained by the front end."""
    if not body.access_token and not body.refresh_token:
        raise HTTPException(status_code=400, detail="access_token or refresh_token is required")
    if body.refresh_token:
        token_provider.set_refresh_token(body.refresh_token)
    if body.access_token:
        token_provider.set_access_token(body.access_token, expires_in=body.expires_in)
    logger.info("Spotify credential handed over")
    return ActionResponse(success=True, message="Token stored")


@router.delete("/token", response_model=ActionResponse)
async def clear_token(
    token_provider: Annotated[SpotifyTokenProvider, Depends(get_token_provider)],
) -> ActionResponse:
    token_provider.clear()
    return ActionResponse(success=True, message="Token cleared")
