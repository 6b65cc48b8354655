"""Command notifier: runs an external program with the reminder as last argument."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class CommandNotifier:
    """Subprocess wrapper around e.g. ``notify-send mdremind <message>``.

    Failures are logged and reported, never retried.
    """

    command: str = "notify-send"
    arguments: list[str] = field(default_factory=list)
    timeout: int = 30

    @property
    def name(self) -> str:
        return "command"

    def _build_command(self, message: str) -> list[str]:
        return [self.command, *self.arguments, message]

    async def deliver(self, message: str) -> bool:
        cmd = self._build_command(message)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("Notification command '%s' timed out after %ds", " ".join(cmd), self.timeout)
            return False
        except OSError as e:
            logger.error("Could not execute command '%s': %s", " ".join(cmd), e)
            return False

        if result.returncode != 0:
            stderr = result.stderr.strip()
            logger.error(
                "Command '%s' failed (rc=%d): %s",
                " ".join(cmd),
                result.returncode,
                stderr or "unknown error",
            )
            return False
        return True
