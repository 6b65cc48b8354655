"""Daemon process: always-on mode.

Usage: python -m mdremind run

Manages:
- Initial reminder load (fatal if the notes tree cannot be scanned)
- Tree watcher + debounce reconciler
- Due-time scheduler
- Graceful shutdown (SIGTERM/SIGINT)
"""

from __future__ import annotations

import asyncio
import logging
import signal

from mdremind.config import MdremindConfig, load_config
from mdremind.notes.store import ReminderStore
from mdremind.notifiers.base import LogNotifier, Notifier
from mdremind.notifiers.command import CommandNotifier
from mdremind.scheduler.due import DueScheduler
from mdremind.watch.observer import TreeWatcher
from mdremind.watch.reconciler import DebounceReconciler, FsEvent

logger = logging.getLogger(__name__)


class ReminderDaemon:
    """Always-on daemon process."""

    def __init__(self, config: MdremindConfig | None = None, notifier: Notifier | None = None) -> None:
        self.config = config or load_config()
        self.notifier = notifier or self._build_notifier()
        self.store = ReminderStore(self.config)
        self._shutdown_event = asyncio.Event()

    # ── Signal handling ──────────────────────────────────────

    def _setup_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    # ── Build components ─────────────────────────────────────

    def _build_notifier(self) -> Notifier:
        notify = self.config.notify
        if not notify.command:
            logger.warning("No notification command configured, reminders go to the log")
            return LogNotifier()
        return CommandNotifier(
            command=notify.command,
            arguments=list(notify.arguments),
            timeout=notify.timeout,
        )

    async def _stop_watching(
        self, watcher: TreeWatcher, queue: asyncio.Queue[FsEvent | None]
    ) -> None:
        await self._shutdown_event.wait()
        await asyncio.to_thread(watcher.stop)
        queue.put_nowait(None)

    # ── Main run loop ────────────────────────────────────────

    async def run(self, watcher: TreeWatcher | None = None) -> None:
        """Load reminders, then watch and schedule until shutdown.

        Raises ScanError if the initial load fails; there is no snapshot to
        fall back on.
        """
        self._setup_signals()

        reminders = await self.store.rebuild()
        logger.info("Loaded %d reminders from %s", len(reminders), self.config.notes_dir)

        queue: asyncio.Queue[FsEvent | None] = asyncio.Queue()
        watcher = watcher or TreeWatcher(self.config.notes_dir, self.config.ignored_dirs)
        watcher.start(asyncio.get_running_loop(), queue)

        reconciler = DebounceReconciler(self.store, self.config, watcher)
        scheduler = DueScheduler(self.store, self.notifier, self.config)

        logger.info("mdremind daemon starting (notifier=%s)", self.notifier.name)

        try:
            await asyncio.gather(
                reconciler.run(queue),
                scheduler.start(self._shutdown_event),
                self._stop_watching(watcher, queue),
            )
        except asyncio.CancelledError:
            pass
        finally:
            reconciler.close()
            logger.info("mdremind daemon stopped.")
