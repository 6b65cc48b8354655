"""Tree scanning: find note files under the notes root."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


class ScanError(OSError):
    """Walking the notes tree failed; the scan produced no result."""

    def __init__(self, path: str | Path, cause: OSError) -> None:
        super().__init__(cause.errno, f"Cannot scan {path}: {cause.strerror or cause}")
        self.path = Path(path)
        self.cause = cause


def _walk(root: Path, ignored: frozenset[str] | set[str], onerror) -> Iterator[tuple[str, list[str], list[str]]]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        # Prune in place so os.walk never descends into ignored subtrees.
        dirnames[:] = sorted(d for d in dirnames if d not in ignored)
        yield dirpath, dirnames, filenames


def scan(root: Path, ignored: frozenset[str] | set[str] = frozenset(), suffix: str = ".md") -> list[Path]:
    """Return every note file under ``root``, pruning ignored directories.

    Raises ScanError on the first traversal failure.
    """

    def _raise(err: OSError) -> None:
        raise ScanError(err.filename or root, err) from err

    if root.name in ignored:
        return []

    notes: list[Path] = []
    for dirpath, _dirnames, filenames in _walk(root, ignored, _raise):
        base = Path(dirpath)
        notes.extend(base / name for name in sorted(filenames) if name.endswith(suffix))
    return notes


def iter_directories(root: Path, ignored: frozenset[str] | set[str] = frozenset()) -> Iterator[Path]:
    """Yield ``root`` and every non-ignored directory beneath it.

    Unreadable directories are logged and skipped.
    """
    if root.name in ignored:
        return

    def _log(err: OSError) -> None:
        logger.error("Failed to walk %s: %s", err.filename or root, err)

    for dirpath, _dirnames, _filenames in _walk(root, ignored, _log):
        yield Path(dirpath)
