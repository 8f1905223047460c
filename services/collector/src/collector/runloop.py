"""Collector run loop: scheduled and manual fetch-and-merge runs behind one guard."""

import asyncio
import enum
import logging

from collector.fetcher import RecentlyPlayedFetcher
from collector.job_tracking import FailureKind, SyncRun, SyncRunTracker
from collector.polling import PollingService
from collector.settings import CollectorSettings
from collector.tokens import SpotifyTokenProvider
from playlog.exceptions import CredentialUnavailableError, StoreError
from playlog.history import HistoryService
from playlog.spotify.client import SpotifyClient
from playlog.spotify.exceptions import TRANSIENT_ERRORS, SpotifyAuthError

logger = logging.getLogger(__name__)

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"


class SchedulerState(enum.StrEnum):
    IDLE = "idle"
    RUNNING = "running"


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception raised during a run to its recovery class."""
    if isinstance(exc, CredentialUnavailableError):
        return FailureKind.CREDENTIAL_UNAVAILABLE
    if isinstance(exc, SpotifyAuthError):
        return FailureKind.CREDENTIAL_EXPIRED
    if isinstance(exc, (*TRANSIENT_ERRORS, TimeoutError)):
        return FailureKind.TRANSIENT
    if isinstance(exc, StoreError):
        return FailureKind.STORE
    return FailureKind.UNKNOWN


class CollectorRunLoop:
    """Drives fetch -> merge on a fixed interval with at most one run in flight.

    Every run, scheduled or manual, goes through :meth:`run_once`, which holds
    an ``asyncio.Lock`` for the whole cycle. A run that finds the lock taken
    is recorded as skipped and returns immediately; it is never queued.
    """

    def __init__(
        self,
        settings: CollectorSettings,
        history: HistoryService,
        token_provider: SpotifyTokenProvider,
        *,
        polling_service: PollingService | None = None,
        tracker: SyncRunTracker | None = None,
    ) -> None:
        self._settings = settings
        self._token_provider = token_provider
        self._polling_service = polling_service or PollingService(
            RecentlyPlayedFetcher(
                page_size=settings.FETCH_PAGE_SIZE,
                max_pages=settings.FETCH_MAX_PAGES,
                client_factory=lambda token: SpotifyClient(token, request_timeout=settings.REQUEST_TIMEOUT_SECONDS),
            ),
            history,
        )
        self._tracker = tracker or SyncRunTracker()
        self._guard = asyncio.Lock()
        self._inflight: set[asyncio.Task[SyncRun]] = set()

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.RUNNING if self._guard.locked() else SchedulerState.IDLE

    @property
    def tracker(self) -> SyncRunTracker:
        return self._tracker

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Run once immediately, then once per interval until shutdown_event is set."""
        interval = self._settings.COLLECTOR_INTERVAL_SECONDS
        logger.info("Collector run loop starting (interval=%ds)", interval)

        self._spawn_tick()
        while not shutdown_event.is_set():
            try:
                async with asyncio.timeout(interval):
                    await shutdown_event.wait()
            except TimeoutError:
                self._spawn_tick()

        if self._inflight:
            logger.info("Waiting for %d in-flight run(s)", len(self._inflight))
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("Collector run loop shutting down")

    def _spawn_tick(self) -> None:
        # Ticks are not awaited, so a slow run is met by the next tick's guard check.
        task = asyncio.create_task(self.run_once(trigger=TRIGGER_SCHEDULED))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def run_once(self, *, trigger: str = TRIGGER_SCHEDULED, raise_errors: bool = False) -> SyncRun:
        """Execute one guarded fetch-and-merge cycle.

        With ``raise_errors`` the failure is re-raised after it is recorded,
        so manual callers get an explicit error. Otherwise every failure is
        logged and swallowed.
        """
        if self._guard.locked():
            return self._tracker.skip_run(trigger, "a run is already in progress")

        async with self._guard:
            token = await self._token_provider.get_valid_credential()
            if token is None and not raise_errors:
                return self._tracker.skip_run(trigger, "no Spotify credential available")

            run = self._tracker.start_run(trigger)
            try:
                if token is None:
                    raise CredentialUnavailableError("No valid Spotify credential available")
                async with asyncio.timeout(self._settings.RUN_TIMEOUT_SECONDS):
                    result = await self._polling_service.poll(token)
            except Exception as exc:
                self._handle_failure(run, exc)
                if raise_errors:
                    raise
                return run

            self._tracker.complete_run(run, fetched=result.fetched, added=result.added)
            return run

    def _handle_failure(self, run: SyncRun, exc: Exception) -> None:
        kind = classify_failure(exc)
        if isinstance(exc, TimeoutError):
            message = f"run exceeded {self._settings.RUN_TIMEOUT_SECONDS}s and was abandoned"
        else:
            message = str(exc) or type(exc).__name__
        if kind is FailureKind.CREDENTIAL_EXPIRED:
            self._token_provider.invalidate()
        self._tracker.fail_run(run, kind, message)
        if kind is FailureKind.UNKNOWN:
            logger.exception("Unexpected error in sync run %d", run.id)
