# Screenshots — move the newest desktop screenshot into Dropbox and share it.
# Created: 2026-10-08
#
# Run by the launchd agent whenever the desktop changes (see plist.py).

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from shotty.config import Settings
from shotty.links import MONTH_FORMAT, LinkMode, LinkResolver
from shotty.system import copy_to_clipboard, notify

logger = logging.getLogger(__name__)

# macOS names screenshots "Screen Shot <date>..." (before Mojave) or "Screenshot <date>...".
SCREENSHOT_PREFIXES = ("Screen Shot ", "Screenshot ")
SCREENSHOT_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".tiff", ".heic", ".mov"})


@dataclass
class MovedScreenshot:
    source: Path
    destination: Path
    url: str


def is_screenshot(path: Path) -> bool:
    return (
        path.is_file()
        and path.name.startswith(SCREENSHOT_PREFIXES)
        and path.suffix.lower() in SCREENSHOT_SUFFIXES
    )


def find_last_screenshot(desktop: Path) -> Path | None:
    """Newest screenshot on the desktop, or None."""
    if not desktop.is_dir():
        return None
    candidates = [p for p in desktop.iterdir() if is_screenshot(p)]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def monthly_directory(settings: Settings, now: datetime | None = None) -> Path:
    return settings.screenshot_directory / (now or datetime.now()).strftime(MONTH_FORMAT)


def _free_destination(target_dir: Path, name: str) -> Path:
    """``target_dir/name``, or ``name (2).png`` and so on when that is taken."""
    destination = target_dir / name
    stem, suffix = destination.stem, destination.suffix
    counter = 2
    while destination.exists():
        destination = target_dir / f"{stem} ({counter}){suffix}"
        counter += 1
    return destination


def move_last_screenshot(
    settings: Settings,
    resolver: LinkResolver,
    now: datetime | None = None,
) -> MovedScreenshot | None:
    """Move the newest screenshot into Dropbox and copy its shared link.

    Returns None when there is nothing to move.
    """
    source = find_last_screenshot(settings.desktop_directory)
    if source is None:
        logger.info("No screenshot found in %s", settings.desktop_directory)
        return None

    target_dir = monthly_directory(settings, now)
    target_dir.mkdir(parents=True, exist_ok=True)
    destination = _free_destination(target_dir, source.name)
    shutil.move(str(source), destination)
    logger.info("Moved %s to %s", source.name, target_dir)

    url = resolver.get_or_create_shared_link(
        destination, LinkMode.FIND_THEN_CREATE, max_retries=settings.max_retries
    )
    copy_to_clipboard(url)
    notify("Shotty", f"Copied link to {destination.name}")
    return MovedScreenshot(source=source, destination=destination, url=url)
