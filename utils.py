# --- utils.py ---
import logging
import subprocess
import sys

from errors import NotificationError

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

NOTIFY_TITLE   = "WOW SERVERS ARE UP"
NOTIFY_MESSAGE = "LOG ON YOU NERD"


def setup_logging(verbose=False):
    """Configure root logging once for the command-line run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO)


def _escape_applescript(s):
    return (s or "").replace("\\", "\\\\").replace('"', '\\"')


def _run_notifier(cmd):
    try:
        subprocess.run(cmd, check=True, capture_output=True, timeout=10)
    except FileNotFoundError as e:
        raise NotificationError(f"{cmd[0]} is not available: {e}") from e
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        raise NotificationError(f"{cmd[0]} failed: {e}") from e


def _toast(title, message):
    try:
        from win10toast import ToastNotifier
    except ImportError as e:
        raise NotificationError("win10toast is not installed") from e
    try:
        ToastNotifier().show_toast(title, message, duration=5, threaded=False)
    except Exception as e:
        raise NotificationError(f"Toast notification failed: {e}") from e


def send_notification(title=NOTIFY_TITLE, message=NOTIFY_MESSAGE, platform=None):
    """
    Show one desktop notification. Raises NotificationError when it cannot
    be delivered; there is no fallback.
    """
    platform = platform or sys.platform
    if platform.startswith("win"):
        _toast(title, message)
    elif platform == "darwin":
        script = (
            f'display notification "{_escape_applescript(message)}" '
            f'with title "{_escape_applescript(title)}"'
        )
        _run_notifier(["osascript", "-e", script])
    else:
        _run_notifier(["notify-send", title, message])
    log.debug("Notification sent: %s", title)
