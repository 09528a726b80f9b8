# System helpers — clipboard, notifications, and the Dropbox process check.
# Created: 2026-10-06
#
# Thin wrappers around macOS utilities. They log failures instead of raising:
# a missing clipboard or notification never fails a command.

from __future__ import annotations

import logging
import shutil
import subprocess

import psutil

logger = logging.getLogger(__name__)

DROPBOX_PROCESS_NAMES = frozenset({"Dropbox", "dropbox"})


def dropbox_running() -> bool:
    """True if a Dropbox sync process is running for any user."""
    for proc in psutil.process_iter(["name"]):
        try:
            if proc.info["name"] in DROPBOX_PROCESS_NAMES:
                return True
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return False


def copy_to_clipboard(text: str) -> bool:
    """Copy ``text`` with pbcopy. Returns True on success."""
    if shutil.which("pbcopy") is None:
        logger.debug("pbcopy not available, skipping clipboard copy")
        return False
    try:
        subprocess.run(["pbcopy"], input=text.encode(), check=True, timeout=5)
        return True
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Failed to copy to clipboard: %s", exc)
        return False


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def notify(title: str, message: str) -> bool:
    """Post a desktop notification through osascript. Returns True on success."""
    if shutil.which("osascript") is None:
        logger.debug("osascript not available, skipping notification")
        return False
    script = (
        f"display notification {_applescript_string(message)} "
        f"with title {_applescript_string(title)}"
    )
    try:
        subprocess.run(["osascript", "-e", script], capture_output=True, check=True, timeout=10)
        return True
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("Failed to post notification: %s", exc)
        return False
