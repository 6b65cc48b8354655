"""Reminder extraction from note text.

A reminder is an unchecked checklist item with a Dataview-style inline
``due`` field:

    - [ ] Pay rent [due:: 2024-01-01]
    - [ ] Call the bank [due:: 2024-01-02 3:30 PM]

A date-only value is completed with the configured default time of day.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path

import frontmatter

logger = logging.getLogger(__name__)

ENTRY_RE = re.compile(r"^ *- \[ \] *(?P<title>.*) \[due:: (?P<due>.*?)\].*$", re.MULTILINE)


@dataclass(frozen=True)
class ReminderEntry:
    """A single reminder parsed from a note."""

    title: str
    due_at: datetime
    source: Path | None = None


def localize(naive: datetime, tz: tzinfo | None) -> datetime:
    """Attach ``tz`` to a naive datetime; ``None`` means system local."""
    if naive.tzinfo is not None:
        return naive if tz is None else naive.astimezone(tz)
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


class EntryExtractor:
    """Turn note text into ReminderEntry values."""

    def __init__(
        self,
        datetime_format: str,
        default_time: str,
        timezone: tzinfo | None = None,
    ) -> None:
        self.datetime_format = datetime_format
        self.default_time = default_time
        self.timezone = timezone

    def parse_due(self, value: str) -> datetime:
        """Parse a ``due`` value. Raises ValueError if it does not match the format."""
        value = value.strip()
        if len(value.split(" ")) == 1:
            value = f"{value} {self.default_time}"
        return localize(datetime.strptime(value, self.datetime_format), self.timezone)

    def extract(self, text: str, source: Path | None = None) -> list[ReminderEntry]:
        """Return reminders in order of appearance, skipping malformed dates."""
        entries: list[ReminderEntry] = []
        for match in ENTRY_RE.finditer(text):
            title = match.group("title")
            raw_due = match.group("due")
            try:
                due_at = self.parse_due(raw_due)
            except ValueError as e:
                logger.warning("Invalid datetime %r in %s: %s", raw_due.strip(), source or "<text>", e)
                continue
            entries.append(ReminderEntry(title=title, due_at=due_at, source=source))
        return entries

    def read_note(self, path: Path) -> list[ReminderEntry]:
        """Extract reminders from a note file, skipping its YAML front matter.

        Raises OSError/UnicodeDecodeError if the file cannot be read.
        """
        text = path.read_text(encoding="utf-8")
        try:
            body = frontmatter.loads(text).content
        except Exception as e:
            logger.debug("Malformed front matter in %s, reading as plain text: %s", path, e)
            body = text
        return self.extract(body, source=path)
