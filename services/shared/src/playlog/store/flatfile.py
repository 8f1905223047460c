"""Flat-file event store: one append-only CSV file in the reference layout."""

import asyncio
import logging
import os
import tempfile
from collections.abc import Sequence
from datetime import date
from pathlib import Path

import anyio
from filelock import FileLock

from playlog.events import ListeningEvent
from playlog.exceptions import MalformedImportError, StoreError
from playlog.store.base import newest_first, select_novel
from playlog.store.codec import HEADER_LINE, decode_events, encode_events

logger = logging.getLogger(__name__)


def _write_atomically(path: Path, content: str) -> None:
    """Write ``content`` to a unique sibling temp file, then swap it into place."""
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def _parse(path: Path, text: str) -> list[ListeningEvent]:
    if not text.strip():
        return []
    try:
        return decode_events(text)
    except MalformedImportError as exc:
        raise StoreError(f"Event log {path} is corrupt: {exc}") from exc


class CsvEventStore:
    """Event store backed by a single CSV file.

    The whole key set is rebuilt from the file on every merge, so each
    load-and-write cycle runs under a ``filelock.FileLock`` on a sibling
    ``.lock`` file. That serializes writers across processes (the collector
    and the API may share one file) as well as across store instances. An
    ``asyncio.Lock`` additionally keeps one process from parking several
    worker threads on the file lock. Every write replaces the file
    atomically: readers see either the old or the new file, and a failed
    merge leaves the old one untouched.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._write_lock = asyncio.Lock()
        self._file_lock = FileLock(self._path.with_name(f".{self._path.name}.lock"))

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_file(self) -> None:
        # Caller holds the file lock.
        if self._path.exists():
            return
        _write_atomically(self._path, HEADER_LINE)
        logger.info("Created event log at %s", self._path)

    def _read_text(self) -> str:
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_lock:
                self._ensure_file()
        with open(self._path, encoding="utf-8", newline="") as fh:
            return fh.read()

    async def _load(self) -> list[ListeningEvent]:
        try:
            text = await anyio.to_thread.run_sync(self._read_text)
        except OSError as exc:
            raise StoreError(f"Failed to read {self._path}: {exc}") from exc
        return _parse(self._path, text)

    def _merge_locked(self, events: Sequence[ListeningEvent]) -> int:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._file_lock:
            self._ensure_file()
            with open(self._path, encoding="utf-8", newline="") as fh:
                text = fh.read()
            existing = _parse(self._path, text)
            novel = select_novel(events, {e.key for e in existing})
            if not novel:
                return 0
            body = text.rstrip("\r\n") + "\n" if text.strip() else HEADER_LINE
            _write_atomically(self._path, body + encode_events(novel, header=False))
        return len(novel)

    async def merge(self, events: Sequence[ListeningEvent]) -> int:
        async with self._write_lock:
            try:
                added = await anyio.to_thread.run_sync(self._merge_locked, events)
            except OSError as exc:
                raise StoreError(f"Failed to write {self._path}: {exc}") from exc

        if not added:
            logger.debug("No new events in batch of %d", len(events))
        else:
            logger.debug("Appended %d of %d events to %s", added, len(events), self._path)
        return added

    async def scan_all(self) -> list[ListeningEvent]:
        return newest_first(await self._load())

    async def scan_date_range(self, start: date, end: date) -> list[ListeningEvent]:
        return [e for e in await self.scan_all() if start <= e.derived_date <= end]

    async def scan_date(self, day: date) -> list[ListeningEvent]:
        return await self.scan_date_range(day, day)

    async def scan_recent(self, limit: int) -> list[ListeningEvent]:
        return (await self.scan_all())[:limit]

    async def count(self) -> int:
        return len(await self._load())

    async def total_duration_ms(self) -> int:
        return sum(e.duration_ms for e in await self._load())

    async def clear(self) -> None:
        async with self._write_lock:
            try:
                await anyio.to_thread.run_sync(self._reset)
            except OSError as exc:
                raise StoreError(f"Failed to clear {self._path}: {exc}") from exc
        logger.info("Cleared event log at %s", self._path)

    def _reset(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._file_lock:
            _write_atomically(self._path, HEADER_LINE)
