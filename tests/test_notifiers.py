"""Tests for notifiers (mostly mocked subprocess calls)."""

import subprocess
import sys

import pytest
from unittest.mock import MagicMock, patch

from mdremind.notifiers.base import LogNotifier, Notifier
from mdremind.notifiers.command import CommandNotifier


class TestCommandNotifier:
    @pytest.fixture
    def notifier(self) -> CommandNotifier:
        return CommandNotifier(command="notify-send", arguments=["-a", "mdremind"])

    def test_is_notifier(self, notifier: CommandNotifier):
        assert isinstance(notifier, Notifier)
        assert notifier.name == "command"

    @pytest.mark.asyncio
    async def test_deliver_success(self, notifier: CommandNotifier):
        mock_result = MagicMock(returncode=0, stdout="", stderr="")

        with patch("mdremind.notifiers.command.subprocess.run", return_value=mock_result) as run:
            assert await notifier.deliver("Pay rent") is True

        cmd = run.call_args.args[0]
        assert cmd == ["notify-send", "-a", "mdremind", "Pay rent"]
        assert run.call_args.kwargs["timeout"] == 30
        assert run.call_args.kwargs["errors"] == "replace"

    @pytest.mark.asyncio
    async def test_command_not_found(self, notifier: CommandNotifier, caplog):
        with patch(
            "mdremind.notifiers.command.subprocess.run",
            side_effect=FileNotFoundError(2, "No such file or directory"),
        ):
            assert await notifier.deliver("Pay rent") is False

        assert "Could not execute command" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout(self, notifier: CommandNotifier):
        with patch(
            "mdremind.notifiers.command.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="notify-send", timeout=30),
        ):
            assert await notifier.deliver("Pay rent") is False

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, notifier: CommandNotifier, caplog):
        mock_result = MagicMock(returncode=1, stdout="", stderr="no display")

        with patch("mdremind.notifiers.command.subprocess.run", return_value=mock_result) as run:
            assert await notifier.deliver("Pay rent") is False

        assert run.call_count == 1  # never retried
        assert "no display" in caplog.text

    @pytest.mark.asyncio
    async def test_undecodable_stderr_is_reported(self, caplog):
        script = "import sys; sys.stderr.buffer.write(b\"\\xff\\xfe bad display\"); sys.exit(3)"
        notifier = CommandNotifier(command=sys.executable, arguments=["-c", script])

        assert await notifier.deliver("Pay rent") is False
        assert "rc=3" in caplog.text
        assert "bad display" in caplog.text


class TestLogNotifier:
    @pytest.mark.asyncio
    async def test_logs_message(self, caplog):
        notifier = LogNotifier()
        with caplog.at_level("INFO", logger="mdremind.notifiers.base"):
            assert await notifier.deliver("Pay rent") is True
        assert "Pay rent" in caplog.text
