"""Notifier protocol."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Protocol that all delivery sinks must implement."""

    @property
    def name(self) -> str: ...

    async def deliver(self, message: str) -> bool:
        """Deliver one reminder message. Returns False on failure, never raises."""
        ...


class LogNotifier:
    """Writes reminders to the log instead of an external program."""

    @property
    def name(self) -> str:
        return "log"

    async def deliver(self, message: str) -> bool:
        logger.info("Reminder: %s", message)
        return True
