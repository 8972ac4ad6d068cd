"""Unit tests for utils.py: desktop notification dispatch.

subprocess.run and win10toast are mocked; nothing is shown on screen.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

import utils as _utils_module
from errors import NotificationError
from utils import send_notification


class TestSendNotification:
    def test_linux_uses_notify_send(self):
        with patch.object(_utils_module.subprocess, "run") as mock_run:
            send_notification("Title", "Body", platform="linux")
        mock_run.assert_called_once_with(
            ["notify-send", "Title", "Body"], check=True, capture_output=True, timeout=10
        )

    def test_default_title_and_message(self):
        with patch.object(_utils_module.subprocess, "run") as mock_run:
            send_notification(platform="linux")
        args = mock_run.call_args.args[0]
        assert args[1:] == ["WOW SERVERS ARE UP", "LOG ON YOU NERD"]

    def test_macos_uses_osascript(self):
        with patch.object(_utils_module.subprocess, "run") as mock_run:
            send_notification('Say "hi"', "Body", platform="darwin")
        cmd = mock_run.call_args.args[0]
        assert cmd[:2] == ["osascript", "-e"]
        assert cmd[2] == 'display notification "Body" with title "Say \\"hi\\""'

    def test_missing_binary_is_notification_error(self):
        with patch.object(
            _utils_module.subprocess, "run", side_effect=FileNotFoundError("notify-send")
        ):
            with pytest.raises(NotificationError):
                send_notification(platform="linux")

    def test_failing_command_is_notification_error(self):
        err = subprocess.CalledProcessError(1, ["notify-send"])
        with patch.object(_utils_module.subprocess, "run", side_effect=err):
            with pytest.raises(NotificationError):
                send_notification(platform="linux")

    def test_windows_uses_win10toast(self):
        win10toast = MagicMock()
        with patch.dict("sys.modules", {"win10toast": win10toast}):
            send_notification("Title", "Body", platform="win32")
        win10toast.ToastNotifier.return_value.show_toast.assert_called_once_with(
            "Title", "Body", duration=5, threaded=False
        )

    def test_windows_without_win10toast(self):
        with patch.dict("sys.modules", {"win10toast": None}):
            with pytest.raises(NotificationError):
                send_notification(platform="win32")
