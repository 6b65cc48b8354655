"""Tree watcher: watchdog observer with one watch per directory.

Directories are scheduled individually (non-recursive) so ignored subtrees
are never observed. Watchdog delivers events on its own thread; the handler
only hands them to the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from mdremind.notes.scanner import iter_directories
from mdremind.watch.reconciler import EventKind, FsEvent

logger = logging.getLogger(__name__)

_KINDS = {
    EVENT_TYPE_CREATED: EventKind.CREATE,
    EVENT_TYPE_MODIFIED: EventKind.WRITE,
    EVENT_TYPE_DELETED: EventKind.REMOVE,
}


def translate(event: FileSystemEvent) -> list[FsEvent]:
    """Map a watchdog event to FsEvents. Open/close events map to nothing."""
    src = Path(os.fsdecode(event.src_path))
    if event.event_type == EVENT_TYPE_MOVED:
        dest = Path(os.fsdecode(event.dest_path))
        return [
            FsEvent(src, EventKind.RENAME, event.is_directory),
            FsEvent(dest, EventKind.CREATE, event.is_directory),
        ]
    kind = _KINDS.get(event.event_type)
    if kind is None:
        return []
    return [FsEvent(src, kind, event.is_directory)]


class _QueueHandler(FileSystemEventHandler):
    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[FsEvent | None]) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def on_any_event(self, event: FileSystemEvent) -> None:
        for fs_event in translate(event):
            self._loop.call_soon_threadsafe(self._queue.put_nowait, fs_event)


class TreeWatcher:
    """Keep a watch on every non-ignored directory under ``root``."""

    def __init__(
        self,
        root: Path,
        ignored: frozenset[str] = frozenset(),
        observer: BaseObserver | None = None,
    ) -> None:
        self.root = root
        self.ignored = ignored
        self._observer = observer or Observer()
        self._handler: FileSystemEventHandler | None = None
        self._watches: dict[Path, ObservedWatch] = {}

    @property
    def watched(self) -> set[Path]:
        return set(self._watches)

    def start(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[FsEvent | None]) -> None:
        self._handler = _QueueHandler(loop, queue)
        # Start first so each schedule() sets up its watch immediately and
        # failures surface per directory.
        self._observer.daemon = True
        self._observer.start()
        self.watch_tree(self.root)
        logger.info("Watching %d directories under %s", len(self._watches), self.root)

    def watch_tree(self, path: Path) -> None:
        """Watch ``path`` and every non-ignored directory beneath it."""
        if self._handler is None:
            raise RuntimeError("Watcher not started, call start() first")
        for directory in iter_directories(path, self.ignored):
            if directory in self._watches:
                continue
            try:
                self._watches[directory] = self._observer.schedule(
                    self._handler, str(directory), recursive=False
                )
            except OSError as e:
                logger.error("Failed to watch directory %s: %s", directory, e)

    def unwatch_tree(self, path: Path) -> None:
        """Drop watches for ``path`` and everything beneath it."""
        for directory in [d for d in self._watches if d == path or path in d.parents]:
            watch = self._watches.pop(directory)
            try:
                self._observer.unschedule(watch)
            except KeyError:
                # The emitter already went away with the directory.
                logger.debug("Watch for %s already removed", directory)

    def stop(self) -> None:
        self._observer.stop()
        self._observer.join(timeout=5)
        self._watches.clear()
        logger.info("Watcher stopped.")
