"""Reminder store: the published snapshot of every reminder in the notes tree.

The snapshot is an immutable tuple swapped by a single assignment, so readers
on the event loop never see a half-built set. Rebuilds run the scan in a
worker thread and are serialised, so the last one to finish reflects the
latest disk state.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from mdremind.config import MdremindConfig
from mdremind.notes.extractor import EntryExtractor, ReminderEntry
from mdremind.notes.scanner import scan

logger = logging.getLogger(__name__)

ReminderSet = tuple[ReminderEntry, ...]


class ReminderStore:
    """Owns the current ReminderSet."""

    def __init__(self, config: MdremindConfig, extractor: EntryExtractor | None = None) -> None:
        self.root: Path = config.notes_dir
        self.ignored = config.ignored_dirs
        self.suffix = config.note_suffix
        self.extractor = extractor or EntryExtractor(
            config.datetime_format,
            config.default_reminder_time,
            config.timezone,
        )
        self._snapshot: ReminderSet = ()
        self._generation = 0
        self._rebuild_lock = asyncio.Lock()

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        return self._generation

    def snapshot(self) -> ReminderSet:
        return self._snapshot

    def load(self) -> ReminderSet:
        """Scan and parse the whole tree without publishing.

        Raises ScanError if the tree cannot be walked. Notes that cannot be
        read individually are logged and skipped.
        """
        entries: list[ReminderEntry] = []
        for path in scan(self.root, self.ignored, self.suffix):
            try:
                entries.extend(self.extractor.read_note(path))
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Could not read file %s: %s", path, e)
        return tuple(entries)

    async def rebuild(self) -> ReminderSet:
        """Reload every note and publish the result.

        On ScanError the previous snapshot stays published and the error is
        re-raised to the caller.
        """
        async with self._rebuild_lock:
            fresh = await asyncio.to_thread(self.load)
            self._snapshot = fresh
            self._generation += 1
            logger.debug(
                "Published %d reminders from %s (generation %d)",
                len(fresh),
                self.root,
                self._generation,
            )
            return fresh
