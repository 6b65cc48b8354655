"""Tests for configuration loading."""

import pytest
from pathlib import Path
from zoneinfo import ZoneInfo

from mdremind.config import go_layout_to_strftime, load_config, resolve_timezone

_ENV_KEYS = [
    "MDREMIND_NOTES_DIR",
    "MDREMIND_DEFAULT_TIME",
    "MDREMIND_DATETIME_FORMAT",
    "MDREMIND_TIMEZONE",
    "MDREMIND_NOTIFY_CMD",
    "MDREMIND_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    (tmp_path / "home" / "notes").mkdir(parents=True)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.notes_dir.name == "notes"
        assert config.default_reminder_time == "09:00 AM"
        assert config.datetime_format == "%Y-%m-%d %I:%M %p"
        assert config.timezone is None
        assert config.ignored_dirs == frozenset()
        assert config.watch.debounce_seconds == 0.1
        assert config.scheduler.tick_seconds == 60

    def test_env_override(self, monkeypatch, tmp_path: Path):
        (tmp_path / "vault").mkdir()
        monkeypatch.setenv("MDREMIND_NOTES_DIR", str(tmp_path / "vault"))
        monkeypatch.setenv("MDREMIND_TIMEZONE", "Europe/Berlin")

        config = load_config()
        assert config.notes_dir == tmp_path / "vault"
        assert config.timezone == ZoneInfo("Europe/Berlin")

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "mdremind.toml"
        notes = tmp_path / "srv-notes"
        notes.mkdir()
        toml_path.write_text(f"""
notes_directory_path = "{notes.as_posix()}"
default_reminder_time = "08:30 AM"
reminder_datetime_format = "2006-01-02 3:04 PM"
ignored_directories = [".trash", "archive"]

[notify]
command = "dunstify"
arguments = ["-a", "mdremind"]

[watch]
debounce_seconds = 0.25
""")
        config = load_config(toml_path)
        assert config.notes_dir == notes
        assert config.default_reminder_time == "08:30 AM"
        assert config.datetime_format == "%Y-%m-%d %I:%M %p"
        assert config.ignored_dirs == frozenset({".trash", "archive"})
        assert config.notify.command == "dunstify"
        assert config.notify.arguments == ("-a", "mdremind")
        assert config.watch.debounce_seconds == 0.25

    def test_discovers_file_in_cwd(self, tmp_path: Path):
        (tmp_path / "mdremind.toml").write_text('log_level = "DEBUG"\n')
        config = load_config()
        assert config.log_level == "DEBUG"

    def test_discovers_file_in_xdg_config(self, tmp_path: Path):
        config_dir = tmp_path / "xdg" / "mdremind"
        config_dir.mkdir(parents=True)
        (config_dir / "mdremind.toml").write_text('note_suffix = ".markdown"\n')
        config = load_config()
        assert config.note_suffix == ".markdown"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MDREMIND_NOTIFY_CMD", "terminal-notifier")

        toml_path = tmp_path / "mdremind.toml"
        toml_path.write_text("""
[notify]
command = "notify-send"
""")
        config = load_config(toml_path)
        assert config.notify.command == "terminal-notifier"  # env wins

    def test_notes_dir_expands_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("NOTES_HOME", str(tmp_path))
        (tmp_path / "vault").mkdir()
        toml_path = tmp_path / "mdremind.toml"
        toml_path.write_text('notes_directory_path = "$NOTES_HOME/vault"\n')
        config = load_config(toml_path)
        assert config.notes_dir == tmp_path / "vault"

    def test_missing_notes_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("MDREMIND_NOTES_DIR", str(tmp_path / "missing"))
        with pytest.raises(ValueError, match="Notes directory not found"):
            load_config()

    def test_notes_dir_must_be_a_directory(self, tmp_path: Path, monkeypatch):
        (tmp_path / "notes.md").write_text("", encoding="utf-8")
        monkeypatch.setenv("MDREMIND_NOTES_DIR", str(tmp_path / "notes.md"))
        with pytest.raises(ValueError, match="Notes directory not found"):
            load_config()

    def test_flat_notification_keys(self, tmp_path: Path):
        toml_path = tmp_path / "mdremind.toml"
        toml_path.write_text("""
notification_cmd = "terminal-notifier"
notification_cmd_arguments = ["-title", "mdremind", "-message"]
""")
        config = load_config(toml_path)
        assert config.notify.command == "terminal-notifier"
        assert config.notify.arguments == ("-title", "mdremind", "-message")

    def test_notify_table_wins_over_flat_keys(self, tmp_path: Path):
        toml_path = tmp_path / "mdremind.toml"
        toml_path.write_text("""
notification_cmd = "terminal-notifier"

[notify]
command = "dunstify"
""")
        config = load_config(toml_path)
        assert config.notify.command == "dunstify"
        assert config.notify.arguments == ("mdremind",)

    def test_unknown_timezone(self, monkeypatch):
        monkeypatch.setenv("MDREMIND_TIMEZONE", "Mars/Olympus_Mons")
        with pytest.raises(ValueError, match="Unknown timezone"):
            load_config()


class TestGoLayout:
    def test_reference_layout(self):
        assert go_layout_to_strftime("2006-01-02 3:04 PM") == "%Y-%m-%d %I:%M %p"

    def test_24_hour_layout(self):
        assert go_layout_to_strftime("2006-01-02 15:04") == "%Y-%m-%d %H:%M"

    def test_month_names(self):
        assert go_layout_to_strftime("Jan 2, 2006 15:04") == "%b %d, %Y %H:%M"

    def test_strftime_passthrough(self):
        assert go_layout_to_strftime("%d.%m.%Y %H:%M") == "%d.%m.%Y %H:%M"


class TestResolveTimezone:
    def test_empty_is_local(self):
        assert resolve_timezone(None) is None
        assert resolve_timezone("") is None

    def test_named_zone(self):
        assert resolve_timezone("UTC") == ZoneInfo("UTC")
