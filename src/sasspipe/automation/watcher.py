"""Watch a stylesheet tree and publish settled batches of changed files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import threading
from typing import AsyncIterator

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer


LOGGER = logging.getLogger(__name__)

STYLESHEET_PATTERNS = ["*.scss", "*.sass"]


class StylesheetChangeCollector(PatternMatchingEventHandler):
    """Gather stylesheet events into one batch per quiet period.

    Every event restarts the settle timer; when no event arrives for
    ``settle_seconds`` the accumulated paths are published as a frozenset.
    Deletions and both ends of a move count as changes, since an entry that
    imported a removed partial has to be rebuilt too.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[frozenset[Path]],
        settle_seconds: float = 0.5,
    ) -> None:
        super().__init__(
            patterns=STYLESHEET_PATTERNS,
            ignore_patterns=["*.tmp", "*.swp", "*~", ".*"],
            ignore_directories=True,
            case_sensitive=False,
        )
        self._loop = loop
        self._queue = queue
        self._settle_seconds = settle_seconds
        self._pending: set[Path] = set()
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _record(self, *raw_paths: str) -> None:
        with self._lock:
            self._pending.update(Path(raw) for raw in raw_paths if raw)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._settle_seconds, self._flush)
            self._timer.daemon = True
            self._timer.start()

    def _flush(self) -> None:
        with self._lock:
            batch = frozenset(self._pending)
            self._pending.clear()
            self._timer = None
        if batch:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, batch)

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(str(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        self._record(str(event.src_path), str(event.dest_path))

    def close(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()


class StylesheetWatcher:
    """Async context manager over a recursive observer of ``watch_dir``.

    Usage::

        async with StylesheetWatcher("styles") as watcher:
            async for changed in watcher.batches():
                ...
    """

    def __init__(self, watch_dir: str | Path, settle_seconds: float = 0.5) -> None:
        self._watch_dir = Path(watch_dir)
        self._settle_seconds = settle_seconds
        self._queue: asyncio.Queue[frozenset[Path]] = asyncio.Queue()
        self._collector: StylesheetChangeCollector | None = None
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    async def __aenter__(self) -> "StylesheetWatcher":
        if not self._watch_dir.is_dir():
            raise ValueError(f"Watch directory does not exist or is not a directory: {self._watch_dir}")

        self._collector = StylesheetChangeCollector(
            loop=asyncio.get_running_loop(),
            queue=self._queue,
            settle_seconds=self._settle_seconds,
        )
        observer = Observer()
        observer.schedule(self._collector, str(self._watch_dir), recursive=True)
        observer.start()
        self._observer = observer
        LOGGER.debug("Observing %s", self._watch_dir)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, 5.0)
            self._observer = None
        if self._collector is not None:
            self._collector.close()
            self._collector = None

    async def batches(self) -> AsyncIterator[frozenset[Path]]:
        """Yield each settled batch of changed stylesheet paths."""

        while self._observer is not None:
            yield await self._queue.get()
