# Tests for shotty/screenshots.py
# Created: 2026-10-08

import os
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from shotty.config import Settings
from shotty.links import LinkMode
from shotty.screenshots import find_last_screenshot, is_screenshot, move_last_screenshot


@pytest.fixture
def desktop(tmp_path):
    d = tmp_path / "Desktop"
    d.mkdir()
    return d


@pytest.fixture
def settings(tmp_path, desktop):
    root = tmp_path / "Dropbox"
    root.mkdir()
    return Settings(token="tok", dropbox_root=root, desktop_directory=desktop, max_retries=4)


def _touch(path, mtime):
    path.write_bytes(b"img")
    os.utime(path, (mtime, mtime))
    return path


class TestFindLastScreenshot:
    def test_newest_wins(self, desktop):
        _touch(desktop / "Screen Shot 2024-01-01 at 10.00.00.png", 1000)
        newest = _touch(desktop / "Screenshot 2024-01-02 at 09.00.00.png", 2000)
        assert find_last_screenshot(desktop) == newest

    def test_ignores_other_files(self, desktop):
        _touch(desktop / "notes.png", 5000)
        _touch(desktop / "Screenshot draft.txt", 5000)
        shot = _touch(desktop / "Screenshot 2024-01-02.png", 1000)
        assert find_last_screenshot(desktop) == shot

    def test_empty_desktop(self, desktop):
        assert find_last_screenshot(desktop) is None

    def test_missing_desktop(self, tmp_path):
        assert find_last_screenshot(tmp_path / "nope") is None

    def test_directories_are_not_screenshots(self, desktop):
        (desktop / "Screenshot folder.png").mkdir()
        assert not is_screenshot(desktop / "Screenshot folder.png")


class TestMoveLastScreenshot:
    def test_moves_and_shares(self, settings, desktop):
        _touch(desktop / "Screenshot 1.png", 1000)
        resolver = MagicMock()
        resolver.get_or_create_shared_link.return_value = "https://dl.dropboxusercontent.com/s/x/1.png"

        with (
            patch("shotty.screenshots.copy_to_clipboard") as copy,
            patch("shotty.screenshots.notify") as notify,
        ):
            moved = move_last_screenshot(settings, resolver, now=datetime(2024, 1, 5))

        expected = settings.screenshot_directory / "2024-01" / "Screenshot 1.png"
        assert moved.destination == expected
        assert expected.exists()
        assert not (desktop / "Screenshot 1.png").exists()
        resolver.get_or_create_shared_link.assert_called_once_with(
            expected, LinkMode.FIND_THEN_CREATE, max_retries=4
        )
        copy.assert_called_once_with("https://dl.dropboxusercontent.com/s/x/1.png")
        notify.assert_called_once()

    def test_nothing_to_move(self, settings):
        resolver = MagicMock()
        assert move_last_screenshot(settings, resolver) is None
        resolver.get_or_create_shared_link.assert_not_called()

    def test_existing_name_is_not_overwritten(self, settings, desktop):
        target = settings.screenshot_directory / "2024-01"
        target.mkdir(parents=True)
        (target / "Screenshot 1.png").write_bytes(b"older")
        _touch(desktop / "Screenshot 1.png", 1000)
        resolver = MagicMock()
        resolver.get_or_create_shared_link.return_value = "https://dl/x.png"

        with patch("shotty.screenshots.copy_to_clipboard"), patch("shotty.screenshots.notify"):
            moved = move_last_screenshot(settings, resolver, now=datetime(2024, 1, 5))

        assert moved.destination == target / "Screenshot 1 (2).png"
        assert (target / "Screenshot 1.png").read_bytes() == b"older"
        assert moved.destination.read_bytes() == b"img"
