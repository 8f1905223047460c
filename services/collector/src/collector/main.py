"""Main entry point for the standalone playlog collector."""

import asyncio
import logging
import signal
import sys

from collector.runloop import CollectorRunLoop
from collector.settings import CollectorSettings
from collector.tokens import SpotifyTokenProvider
from playlog.config import StoreSettings
from playlog.constants import ServiceName
from playlog.db import DatabaseManager
from playlog.history import HistoryService
from playlog.logging import configure_logging

logger = logging.getLogger(__name__)


def _register_shutdown_signals(loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event) -> None:
    """Register signal handlers for graceful shutdown on both Unix and Windows."""

    def _signal_handler_sync(signum: int, _frame: object) -> None:
        logger.info("Shutdown signal received (signal %d)", signum)
        loop.call_soon_threadsafe(shutdown_event.set)

    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_event.set)
    else:
        # loop.add_signal_handler is unavailable on Windows.
        signal.signal(signal.SIGTERM, _signal_handler_sync)
        signal.signal(signal.SIGINT, _signal_handler_sync)


async def main() -> None:
    """Collector entry point with graceful shutdown."""
    configure_logging(ServiceName.COLLECTOR)
    logger.info("Playlog collector starting...")
    settings = CollectorSettings()
    store_settings = StoreSettings()
    db_manager = DatabaseManager.from_env()
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    _register_shutdown_signals(loop, shutdown_event)

    try:
        if store_settings.STORE_BACKEND == "database":
            await db_manager.create_schema()
        history = HistoryService.from_settings(store_settings, db_manager)
        run_loop = CollectorRunLoop(settings, history, SpotifyTokenProvider(settings))
        await run_loop.run(shutdown_event)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received, shutting down")
    finally:
        await db_manager.dispose()
        logger.info("Collector shut down complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
