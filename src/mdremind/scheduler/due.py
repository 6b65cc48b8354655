"""Due-time scheduler using pure asyncio.

At startup every reminder already due is delivered once (catch-up). After
that a tick runs every ``tick_seconds`` and delivers reminders whose due
minute falls in the window since the previous tick:

    (last checked minute, current minute]

A late tick therefore still covers the minutes it skipped, and a second tick
inside the same minute delivers nothing. Reminders are never marked as
delivered; the moving window is the only record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mdremind.config import MdremindConfig
    from mdremind.notes.extractor import ReminderEntry
    from mdremind.notes.store import ReminderStore
    from mdremind.notifiers.base import Notifier

logger = logging.getLogger(__name__)


def to_minute(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert to ``tz`` (system local if None) and truncate to the minute."""
    local = dt.astimezone(tz) if tz is not None else dt.astimezone()
    return local.replace(second=0, microsecond=0)


class DueScheduler:
    """Deliver reminders from the store's current snapshot when they fall due."""

    def __init__(
        self,
        store: ReminderStore,
        notifier: Notifier,
        config: MdremindConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._tz = config.timezone
        self._tick_seconds = config.scheduler.tick_seconds
        self._clock = clock or (lambda: datetime.now(self._tz))
        self._last_minute: datetime | None = None

    @property
    def last_minute(self) -> datetime | None:
        return self._last_minute

    async def start(self, shutdown_event: asyncio.Event) -> None:
        """Catch up, then tick until shutdown_event is set."""
        await self.catch_up()
        logger.info("Scheduler started (tick=%ds)", self._tick_seconds)

        while not shutdown_event.is_set():
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self._tick_seconds)
                break  # shutdown requested
            except asyncio.TimeoutError:
                pass  # interval elapsed, check reminders

            try:
                await self.tick()
            except Exception as e:
                logger.error("Scheduler tick failed: %s", e)

        logger.info("Scheduler stopped.")

    async def catch_up(self, now: datetime | None = None) -> list[ReminderEntry]:
        """Deliver every reminder due at or before the current minute."""
        current = to_minute(now or self._clock(), self._tz)
        due = [e for e in self._store.snapshot() if to_minute(e.due_at, self._tz) <= current]
        self._last_minute = current
        if due:
            logger.info("Catching up on %d overdue reminders", len(due))
        await self._deliver_all(due)
        return due

    async def tick(self, now: datetime | None = None) -> list[ReminderEntry]:
        """Deliver reminders due since the previous tick, up to the current minute."""
        current = to_minute(now or self._clock(), self._tz)
        last = self._last_minute
        if last is not None and current <= last:
            logger.debug("Minute %s already checked", current.strftime("%H:%M"))
            return []

        lower = last if last is not None else current - timedelta(minutes=1)
        due = [
            e for e in self._store.snapshot() if lower < to_minute(e.due_at, self._tz) <= current
        ]
        self._last_minute = current
        await self._deliver_all(due)
        return due

    async def _deliver_all(self, entries: list[ReminderEntry]) -> None:
        for entry in entries:
            try:
                delivered = await self._notifier.deliver(entry.title)
            except Exception as e:
                logger.error("Notifier %s failed for %r: %s", self._notifier.name, entry.title, e)
                continue
            if delivered:
                logger.info("Delivered reminder %r (due %s)", entry.title, entry.due_at.isoformat())
