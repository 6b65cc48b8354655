"""Debounce reconciler: turn filesystem events into store rebuilds.

Editors emit several writes per save, so create/write events arm a per-path
timer that fires one rebuild after a quiet window; each further event for the
same path pushes the window back. Removals rebuild immediately.

All timer-table access happens on the event loop thread in synchronous code,
so looking up and registering a path's timer is a single atomic step.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from mdremind.config import MdremindConfig
from mdremind.notes.store import ReminderStore

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"


@dataclass(frozen=True)
class FsEvent:
    """A filesystem change, already detached from the watcher thread."""

    path: Path
    kind: EventKind
    is_directory: bool = False


class DirectoryWatcher(Protocol):
    """The part of the tree watcher the reconciler drives."""

    def watch_tree(self, path: Path) -> None: ...

    def unwatch_tree(self, path: Path) -> None: ...


class TimerState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"


class DebounceTimer:
    """Pending-reload timer for one path.

    idle --arm--> armed --quiet window--> fired --callback done--> idle
    Arming while armed restarts the window; arming while fired schedules
    exactly one more run.
    """

    def __init__(
        self,
        path: Path,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.path = path
        self.delay = delay
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._inflight = 0
        self.state = TimerState.IDLE
        self.fire_count = 0

    def arm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self.delay, self._fire)
        self.state = TimerState.ARMED

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.state is TimerState.ARMED:
            self.state = TimerState.IDLE

    def _fire(self) -> None:
        self._handle = None
        self.state = TimerState.FIRED
        self.fire_count += 1
        self._inflight += 1
        task = self._loop.create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        try:
            await self._callback()
        finally:
            self._inflight -= 1
            # Only the last overlapping run may settle the timer.
            if self._inflight == 0 and self._handle is None and self.state is TimerState.FIRED:
                self.state = TimerState.IDLE


class DebounceReconciler:
    """Consume FsEvents one at a time and keep the store in sync with disk."""

    def __init__(
        self,
        store: ReminderStore,
        config: MdremindConfig,
        watcher: DirectoryWatcher | None = None,
    ) -> None:
        self.store = store
        self.watcher = watcher
        self.suffix = config.note_suffix
        self.ignored = config.ignored_dirs
        self.quiet_window = config.watch.debounce_seconds
        self._timers: dict[Path, DebounceTimer] = {}

    # ── Timer table ──────────────────────────────────────────

    def _get_timer(self, path: Path) -> DebounceTimer:
        timer = self._timers.get(path)
        if timer is None:
            timer = DebounceTimer(
                path,
                self.quiet_window,
                self.reconcile,
                asyncio.get_running_loop(),
            )
            self._timers[path] = timer
        return timer

    def timer_for(self, path: Path) -> DebounceTimer | None:
        return self._timers.get(path)

    # ── Reconciliation ───────────────────────────────────────

    async def reconcile(self) -> None:
        """Rebuild the store, keeping the previous snapshot on failure."""
        try:
            reminders = await self.store.rebuild()
        except OSError as e:
            logger.error("Reconciliation failed, previous snapshot kept: %s", e)
            return
        except Exception:
            logger.exception("Unexpected error during reconciliation, previous snapshot kept")
            return
        logger.info("Reconciled %d reminders", len(reminders))

    # ── Event handling ───────────────────────────────────────

    def _is_note(self, path: Path) -> bool:
        return path.name.endswith(self.suffix)

    async def handle(self, event: FsEvent) -> None:
        logger.debug("Watcher event: %s %s", event.kind.value, event.path)

        if event.is_directory:
            await self._handle_directory(event)
            return

        if not self._is_note(event.path):
            return

        if event.kind in (EventKind.REMOVE, EventKind.RENAME):
            await self.reconcile()
        else:
            self._get_timer(event.path).arm()

    async def _handle_directory(self, event: FsEvent) -> None:
        if event.path.name in self.ignored:
            return
        if event.kind is EventKind.CREATE:
            if self.watcher is not None:
                await asyncio.to_thread(self.watcher.watch_tree, event.path)
            # Notes moved in along with the directory raise no events of their own.
            self._get_timer(event.path).arm()
        elif event.kind in (EventKind.REMOVE, EventKind.RENAME):
            if self.watcher is not None:
                self.watcher.unwatch_tree(event.path)
            await self.reconcile()

    async def run(self, queue: asyncio.Queue[FsEvent | None]) -> None:
        """Process events until a ``None`` sentinel arrives."""
        logger.info("Reconciler started (quiet window=%.2fs)", self.quiet_window)
        while True:
            event = await queue.get()
            if event is None:
                break
            try:
                await self.handle(event)
            except Exception as e:
                logger.error("Failed to handle %s event for %s: %s", event.kind.value, event.path, e)
        logger.info("Reconciler stopped.")

    def close(self) -> None:
        """Cancel armed timers. Rebuilds already in flight are left to finish."""
        for timer in self._timers.values():
            timer.cancel()
