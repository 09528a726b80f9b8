# launchd agent — runs `shotty mv-last-screenshot` whenever the desktop changes.
# Created: 2026-10-08

from __future__ import annotations

import plistlib
import shutil
import sys
from pathlib import Path
from typing import Any

from shotty.config import Settings

LABEL = "com.shotty.mv-last-screenshot"


def plist_path() -> Path:
    """Where launchd looks for per-user agents."""
    return Path.home() / "Library" / "LaunchAgents" / f"{LABEL}.plist"


def log_path() -> Path:
    return Path.home() / "Library" / "Logs" / "shotty.log"


def get_executable_path() -> str:
    """Path to the installed ``shotty`` script, falling back to argv[0]."""
    found = shutil.which("shotty")
    if found:
        return found
    return str(Path(sys.argv[0]).resolve())


def plist_content(desktop: Path, executable: str | None = None) -> dict[str, Any]:
    exe = executable or get_executable_path()
    return {
        "Label": LABEL,
        "ProgramArguments": [exe, "mv-last-screenshot"],
        "WatchPaths": [str(desktop)],
        "RunAtLoad": False,
        "StandardOutPath": str(log_path()),
        "StandardErrorPath": str(log_path()),
    }


def render_plist(settings: Settings | None = None, executable: str | None = None) -> str:
    """The agent definition as plist XML.

    Without settings the default desktop (``~/Desktop``) is watched.
    """
    desktop = settings.desktop_directory if settings else Path.home() / "Desktop"
    return plistlib.dumps(plist_content(desktop, executable)).decode()
