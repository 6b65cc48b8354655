"""Entry point: python -m mdremind [run|list]

- No args / "run": Daemon mode (watch notes, deliver reminders)
- "list":          Print every reminder currently found in the notes tree
"""

from __future__ import annotations

import asyncio
import logging
import sys

from mdremind.config import MdremindConfig, load_config
from mdremind.notes.scanner import ScanError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config_or_exit() -> MdremindConfig:
    try:
        return load_config()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)


def _run_daemon() -> None:
    """Daemon mode: watcher + reconciler + scheduler."""
    config = _load_config_or_exit()
    _setup_logging(config.log_level)

    from mdremind.daemon import ReminderDaemon

    daemon = ReminderDaemon(config)
    try:
        asyncio.run(daemon.run())
    except ScanError as e:
        logging.getLogger("mdremind").critical("Error finding markdown files: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


def _run_list() -> None:
    """Load the tree once and print the reminders."""
    config = _load_config_or_exit()
    _setup_logging(config.log_level)

    from mdremind.notes.store import ReminderStore

    store = ReminderStore(config)
    try:
        reminders = store.load()
    except ScanError as e:
        print(f"Error finding markdown files: {e}", file=sys.stderr)
        sys.exit(1)

    for entry in sorted(reminders, key=lambda e: e.due_at):
        print(f"{entry.due_at:%Y-%m-%d %H:%M}  {entry.title}  ({entry.source})")


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "run"

    if cmd in ("run", "serve"):
        _run_daemon()
    elif cmd == "list":
        _run_list()
    else:
        print("Usage: python -m mdremind [run|list]")
        print("  run   Daemon mode: watch notes and deliver reminders (default)")
        print("  list  Print reminders found in the notes tree")
        sys.exit(1)


if __name__ == "__main__":
    main()
