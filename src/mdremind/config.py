"""Configuration loading from environment variables and mdremind.toml."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "mdremind.toml"
_DEFAULT_NOTES_DIR = "~/notes"
_DEFAULT_FORMAT = "%Y-%m-%d %I:%M %p"

# Go reference-time tokens, longest first so "2006" wins over "2" and "01" over "1".
_GO_LAYOUT_TOKENS = [
    ("January", "%B"),
    ("Monday", "%A"),
    ("Z07:00", "%z"),
    ("-07:00", "%z"),
    ("-0700", "%z"),
    ("2006", "%Y"),
    ("Jan", "%b"),
    ("Mon", "%a"),
    ("MST", "%Z"),
    ("002", "%j"),
    ("01", "%m"),
    ("02", "%d"),
    ("_2", "%d"),
    ("03", "%I"),
    ("04", "%M"),
    ("05", "%S"),
    ("06", "%y"),
    ("15", "%H"),
    ("PM", "%p"),
    ("pm", "%p"),
    ("1", "%m"),
    ("2", "%d"),
    ("3", "%I"),
    ("4", "%M"),
    ("5", "%S"),
]
_GO_LAYOUT_RE = re.compile("|".join(re.escape(tok) for tok, _ in _GO_LAYOUT_TOKENS))


def go_layout_to_strftime(layout: str) -> str:
    """Translate a Go reference layout such as ``2006-01-02 3:04 PM``.

    Patterns that already contain ``%`` are returned unchanged.
    """
    if "%" in layout:
        return layout
    mapping = dict(_GO_LAYOUT_TOKENS)
    return _GO_LAYOUT_RE.sub(lambda m: mapping[m.group(0)], layout)


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Resolve an IANA timezone name. ``None``/empty means system local."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name!r}") from e


@dataclass(frozen=True)
class NotifyConfig:
    """External notification command."""

    command: str = "notify-send"
    arguments: tuple[str, ...] = ("mdremind",)
    timeout: int = 30


@dataclass(frozen=True)
class WatchConfig:
    """Filesystem watch configuration."""

    debounce_seconds: float = 0.1


@dataclass(frozen=True)
class SchedulerConfig:
    """Scheduler configuration."""

    tick_seconds: float = 60.0


@dataclass(frozen=True)
class MdremindConfig:
    """Top-level mdremind configuration."""

    notes_dir: Path = Path(_DEFAULT_NOTES_DIR).expanduser()
    default_reminder_time: str = "09:00 AM"
    datetime_format: str = _DEFAULT_FORMAT
    timezone: tzinfo | None = None
    ignored_dirs: frozenset[str] = frozenset()
    note_suffix: str = ".md"
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    log_level: str = "INFO"


def _expand_path(raw: str) -> Path:
    return Path(os.path.expandvars(raw)).expanduser()


def _config_candidates() -> list[Path]:
    config_home = Path(os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return [Path.cwd() / _CONFIG_FILENAME, config_home / "mdremind" / _CONFIG_FILENAME]


def load_config(config_path: Path | None = None) -> MdremindConfig:
    """Load configuration from environment variables and optional mdremind.toml.

    Priority: environment variables > mdremind.toml > defaults.
    The notification command may be given as a [notify] table or with the
    flat keys `notification_cmd` / `notification_cmd_arguments`; the table wins.
    Raises ValueError for an unknown timezone or a missing notes directory.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in _config_candidates():
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    notify_data = file_data.get("notify", {})
    watch_data = file_data.get("watch", {})
    scheduler_data = file_data.get("scheduler", {})

    raw_format = os.getenv(
        "MDREMIND_DATETIME_FORMAT", file_data.get("reminder_datetime_format", _DEFAULT_FORMAT)
    )

    config = MdremindConfig(
        notes_dir=_expand_path(
            os.getenv("MDREMIND_NOTES_DIR", file_data.get("notes_directory_path", _DEFAULT_NOTES_DIR))
        ),
        default_reminder_time=os.getenv(
            "MDREMIND_DEFAULT_TIME", file_data.get("default_reminder_time", "09:00 AM")
        ),
        datetime_format=go_layout_to_strftime(raw_format),
        timezone=resolve_timezone(os.getenv("MDREMIND_TIMEZONE", file_data.get("timezone"))),
        ignored_dirs=frozenset(file_data.get("ignored_directories", [])),
        note_suffix=file_data.get("note_suffix", ".md"),
        notify=NotifyConfig(
            command=os.getenv(
                "MDREMIND_NOTIFY_CMD",
                notify_data.get("command", file_data.get("notification_cmd", "notify-send")),
            ),
            arguments=tuple(
                notify_data.get("arguments", file_data.get("notification_cmd_arguments", ["mdremind"]))
            ),
            timeout=int(notify_data.get("timeout", 30)),
        ),
        watch=WatchConfig(
            debounce_seconds=float(watch_data.get("debounce_seconds", 0.1)),
        ),
        scheduler=SchedulerConfig(
            tick_seconds=float(scheduler_data.get("tick_seconds", 60)),
        ),
        log_level=os.getenv("MDREMIND_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    if not config.notes_dir.is_dir():
        raise ValueError(f"Notes directory not found: {config.notes_dir}")
    return config
