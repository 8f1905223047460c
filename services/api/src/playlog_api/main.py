"""Main FastAPI application for the Playlog API."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from collector.runloop import CollectorRunLoop
from collector.settings import CollectorSettings
from collector.tokens import SpotifyTokenProvider
from playlog.config import StoreSettings
from playlog.constants import ServiceName
from playlog.db import DatabaseManager
from playlog.exceptions import StoreError
from playlog.history import HistoryService
from playlog.logging import configure_logging
from playlog_api.constants import APP_DESCRIPTION, APP_TITLE, APP_VERSION, Routes
from playlog_api.history import router as history_router
from playlog_api.middleware import RequestIDMiddleware
from playlog_api.settings import AppSettings, get_settings
from playlog_api.sync import router as sync_router

logger = logging.getLogger(__name__)


async def _store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Event store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": f"Event store failure: {exc}"})


class PlaylogApp:
    """Application container: configures middleware, routers, and lifespan."""

    app: FastAPI

    def __init__(self, settings: AppSettings | None = None) -> None:
        configure_logging(ServiceName.API)
        self._settings = settings or get_settings()
        self.app = FastAPI(
            title=APP_TITLE,
            description=APP_DESCRIPTION,
            version=APP_VERSION,
            lifespan=self._lifespan,
        )
        self.app.add_exception_handler(StoreError, _store_error_handler)
        self._setup_middleware()
        self._setup_routers()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncGenerator[None]:
        """Build the store, history and collector; run the scheduler while serving."""
        store_settings = StoreSettings()
        collector_settings = CollectorSettings()
        db_manager = DatabaseManager.from_env()
        if store_settings.STORE_BACKEND == "database":
            await db_manager.create_schema()

        history = HistoryService.from_settings(store_settings, db_manager)
        token_provider = SpotifyTokenProvider(collector_settings)
        run_loop = CollectorRunLoop(collector_settings, history, token_provider)
        app.state.history = history
        app.state.token_provider = token_provider
        app.state.run_loop = run_loop

        shutdown_event = asyncio.Event()
        loop_task: asyncio.Task[None] | None = None
        if self._settings.SCHEDULER_ENABLED:
            loop_task = asyncio.create_task(run_loop.run(shutdown_event))
        else:
            logger.info("Scheduler disabled; runs happen only via POST %s", Routes.SYNC.prefix)

        try:
            yield
        finally:
            shutdown_event.set()
            if loop_task is not None:
                await loop_task
            await db_manager.dispose()

    def _setup_middleware(self) -> None:
        # Request-ID (generates/propagates X-Request-ID)
        self.app.add_middleware(RequestIDMiddleware)

        # CORS
        origins = [o.strip() for o in self._settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_routers(self) -> None:
        self.app.include_router(history_router, prefix=Routes.HISTORY.prefix, tags=[Routes.HISTORY.tag])
        self.app.include_router(sync_router, prefix=Routes.SYNC.prefix, tags=[Routes.SYNC.tag])

        @self.app.get(Routes.HEALTH)
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "healthy"}

        @self.app.get("/")
        async def root() -> dict[str, str]:
            """Root endpoint."""
            return {"message": APP_TITLE, "version": APP_VERSION}


_application = PlaylogApp()
app: FastAPI = _application.app
