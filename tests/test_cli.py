# Tests for the shotty CLI (shotty/__main__.py)
# Created: 2026-10-09

import json
from unittest.mock import MagicMock, patch

import pytest

from shotty.__main__ import build_parser, run
from shotty.errors import DropboxApiError
from shotty.links import LinkMode


@pytest.fixture
def config(tmp_path, monkeypatch):
    root = tmp_path / "Dropbox"
    root.mkdir()
    path = tmp_path / "shotty.json"
    path.write_text(json.dumps({"token": "sl.secret-token-value", "dropbox_root": str(root), "max_retries": 3}))
    monkeypatch.setenv("SHOTTY_CONFIG", str(path))
    return path


@pytest.fixture
def dropbox():
    """Patch DropboxClient in the CLI and hand back the instance it creates."""
    with patch("shotty.__main__.DropboxClient") as cls:
        instance = cls.return_value
        instance.__enter__.return_value = instance
        yield instance


class TestParser:
    @pytest.mark.parametrize(
        "command",
        [
            "authorize",
            "config",
            "config-file",
            "dropbox-status",
            "mv-last-screenshot",
            "plist",
            "plist-file",
            "usage",
            "version",
            "help",
        ],
    )
    def test_commands_without_arguments(self, command):
        assert build_parser().parse_args([command]).command == command

    @pytest.mark.parametrize("command", ["create-url", "get-url", "upload", "url"])
    def test_file_commands(self, command):
        args = build_parser().parse_args([command, "a.png"])
        assert args.file == "a.png"


class TestCommands:
    def test_help(self, capsys):
        assert run(["help"]) == 0
        assert "mv-last-screenshot" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert run([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        assert run(["version"]) == 0
        assert capsys.readouterr().out.startswith("shotty ")

    def test_config_file(self, config, capsys):
        assert run(["config-file"]) == 0
        assert capsys.readouterr().out.strip() == str(config)

    def test_config_masks_token(self, config, capsys):
        assert run(["config"]) == 0
        output = capsys.readouterr().out
        assert "secret-token-value" not in output
        assert "dropbox_root" in output

    def test_missing_config_is_fatal(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SHOTTY_CONFIG", str(tmp_path / "missing.json"))
        assert run(["url", "a.png"]) == 1
        assert "does not exist" in capsys.readouterr().err

    def test_url_uses_find_then_create_with_retries(self, config, capsys):
        with patch("shotty.__main__.LinkResolver") as resolver_cls:
            resolver_cls.return_value.get_or_create_shared_link.return_value = "https://dl/x.png"
            with patch("shotty.__main__.DropboxClient"):
                assert run(["url", "x.png"]) == 0
        resolver_cls.return_value.get_or_create_shared_link.assert_called_once_with(
            "x.png", LinkMode.FIND_THEN_CREATE, max_retries=3
        )
        assert capsys.readouterr().out.strip() == "https://dl/x.png"

    @pytest.mark.parametrize(
        "command, mode", [("get-url", LinkMode.FIND_ONLY), ("create-url", LinkMode.CREATE_ONLY)]
    )
    def test_link_commands_do_not_retry(self, config, command, mode):
        with patch("shotty.__main__.LinkResolver") as resolver_cls:
            resolver_cls.return_value.get_or_create_shared_link.return_value = "https://dl/x.png"
            with patch("shotty.__main__.DropboxClient"):
                assert run([command, "x.png"]) == 0
        resolver_cls.return_value.get_or_create_shared_link.assert_called_once_with(
            "x.png", mode, max_retries=0
        )

    def test_api_error_exits_1(self, config, dropbox, capsys):
        dropbox.create_shared_link.side_effect = DropboxApiError("shared_link_already_exists/..")
        assert run(["create-url", "x.png"]) == 1
        assert "shared link already exists" in capsys.readouterr().err

    def test_upload_missing_file(self, config, dropbox, tmp_path, capsys):
        assert run(["upload", str(tmp_path / "nope.png")]) == 1
        assert "File not found" in capsys.readouterr().err
        dropbox.upload.assert_not_called()

    def test_usage(self, config, dropbox, capsys):
        dropbox.get_space_usage.return_value = {
            "used": 512 * 1024**2,
            "allocation": {".tag": "individual", "allocated": 2 * 1024**3},
        }
        assert run(["usage"]) == 0
        assert capsys.readouterr().out.strip() == "512.0 MB of 2.0 GB used (25.0%)"

    @pytest.mark.parametrize("running, code", [(True, 0), (False, 1)])
    def test_dropbox_status(self, running, code, capsys):
        with patch("shotty.__main__.dropbox_running", return_value=running):
            assert run(["dropbox-status"]) == code

    def test_plist_without_config(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SHOTTY_CONFIG", str(tmp_path / "missing.json"))
        assert run(["plist"]) == 0
        assert "mv-last-screenshot" in capsys.readouterr().out

    def test_plist_file(self, capsys):
        assert run(["plist-file"]) == 0
        assert capsys.readouterr().out.strip().endswith("com.shotty.mv-last-screenshot.plist")

    def test_authorize_opens_browser(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHOTTY_CONFIG", str(tmp_path / "missing.json"))
        monkeypatch.setenv("SHOTTY_SERVER_URL", "https://shotty.test/")
        with patch("shotty.__main__.webbrowser.open") as mock_open:
            assert run(["authorize"]) == 0
        mock_open.assert_called_once_with("https://shotty.test/authorize")

    def test_mv_last_screenshot_nothing_to_do(self, config, dropbox, capsys):
        with patch("shotty.__main__.move_last_screenshot", return_value=None) as mv:
            assert run(["mv-last-screenshot"]) == 0
        mv.assert_called_once()
        assert capsys.readouterr().out == ""

    def test_non_json_response_exits_1(self, config, capsys):
        import httpx

        from shotty.dropbox import DropboxClient

        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        with patch(
            "shotty.__main__.DropboxClient",
            side_effect=lambda token, **kw: DropboxClient(token, transport=transport),
        ):
            assert run(["get-url", "x.png"]) == 1
        assert "Traceback" not in capsys.readouterr().err

    def test_network_error_exits_1(self, config, dropbox, capsys):
        import httpx

        dropbox.get_space_usage.side_effect = httpx.ConnectError("offline")
        assert run(["usage"]) == 1
        assert "Network error" in capsys.readouterr().err


def test_main_exits_with_code():
    from shotty.__main__ import main

    with patch("shotty.__main__.run", return_value=1), pytest.raises(SystemExit) as exc_info:
        main()
    assert exc_info.value.code == 1
