"""Shotty command-line client.

Every command that talks to Dropbox loads the config file once, builds a
client and a resolver from it, and lets errors propagate to :func:`run`, which
prints them and turns them into exit code 1.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import webbrowser
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import httpx
from rich.console import Console
from rich.markup import escape

from shotty.config import DEFAULT_SERVER_URL, Settings, get_config_path
from shotty.dropbox import DropboxClient
from shotty.errors import ShottyError
from shotty.links import LinkMode, LinkResolver
from shotty.logging_setup import setup_logging
from shotty.plist import plist_path, render_plist
from shotty.screenshots import move_last_screenshot
from shotty.system import dropbox_running

logger = logging.getLogger(__name__)

out = Console(highlight=False, markup=False, soft_wrap=True)
err = Console(stderr=True, highlight=False, soft_wrap=True)


def _version() -> str:
    try:
        return get_version("shotty")
    except PackageNotFoundError:
        return "unknown"


def _format_bytes(size: float) -> str:
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024 or unit == "TB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _open_resolver(settings: Settings) -> tuple[DropboxClient, LinkResolver]:
    client = DropboxClient(settings.token, timeout=settings.http_timeout)
    return client, LinkResolver(client, settings)


# ── Commands ─────────────────────────────────────────────────────────


def cmd_authorize(args: argparse.Namespace) -> int:
    server_url = os.environ.get("SHOTTY_SERVER_URL")
    if not server_url:
        try:
            server_url = Settings.load().server_url
        except ShottyError:
            server_url = DEFAULT_SERVER_URL
    url = f"{server_url.rstrip('/')}/authorize"
    out.print(f"Opening {url}")
    out.print(f"Save the token it gives you in {get_config_path()}")
    webbrowser.open(url)
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    settings = Settings.load()
    out.print_json(json.dumps(settings.public_dict()))
    return 0


def cmd_config_file(args: argparse.Namespace) -> int:
    out.print(str(get_config_path()))
    return 0


def cmd_dropbox_status(args: argparse.Namespace) -> int:
    if dropbox_running():
        out.print("Dropbox is running")
        return 0
    out.print("Dropbox is not running")
    return 1


def _link_command(mode: LinkMode, use_retries: bool) -> Callable[[argparse.Namespace], int]:
    def command(args: argparse.Namespace) -> int:
        settings = Settings.load()
        client, resolver = _open_resolver(settings)
        with client:
            url = resolver.get_or_create_shared_link(
                args.file, mode, max_retries=settings.max_retries if use_retries else 0
            )
        out.print(url)
        return 0

    return command


cmd_url = _link_command(LinkMode.FIND_THEN_CREATE, use_retries=True)
cmd_get_url = _link_command(LinkMode.FIND_ONLY, use_retries=False)
cmd_create_url = _link_command(LinkMode.CREATE_ONLY, use_retries=False)


def cmd_upload(args: argparse.Namespace) -> int:
    settings = Settings.load()
    client, resolver = _open_resolver(settings)
    with client:
        url = resolver.upload(args.file)
    out.print(url)
    return 0


def cmd_mv_last_screenshot(args: argparse.Namespace) -> int:
    settings = Settings.load()
    client, resolver = _open_resolver(settings)
    with client:
        moved = move_last_screenshot(settings, resolver)
    if moved is not None:
        out.print(moved.url)
    return 0


def cmd_plist(args: argparse.Namespace) -> int:
    try:
        settings = Settings.load()
    except ShottyError:
        settings = None
    out.print(render_plist(settings), end="")
    return 0


def cmd_plist_file(args: argparse.Namespace) -> int:
    out.print(str(plist_path()))
    return 0


def cmd_usage(args: argparse.Namespace) -> int:
    settings = Settings.load()
    with DropboxClient(settings.token, timeout=settings.http_timeout) as client:
        usage = client.get_space_usage()
    used = usage.get("used", 0)
    allocated = usage.get("allocation", {}).get("allocated", 0)
    if allocated:
        percent = used / allocated * 100
        out.print(f"{_format_bytes(used)} of {_format_bytes(allocated)} used ({percent:.1f}%)")
    else:
        out.print(f"{_format_bytes(used)} used")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    out.print(f"shotty {_version()}")
    return 0


# ── Parser ───────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shotty",
        description="Share screenshots and files through Dropbox shared links",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shotty authorize                   Get a Dropbox token in your browser
  shotty url ~/Dropbox/cat.png       Print a direct link, creating one if needed
  shotty upload ./report.pdf         Upload into this month's folder and link it
  shotty plist > "$(shotty plist-file)"
                                     Install the screenshot launchd agent
""",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show debug logging"
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    def add(name: str, func: Callable[[argparse.Namespace], int], text: str, file: bool = False):
        p = sub.add_parser(name, help=text, description=text)
        if file:
            p.add_argument("file", help="Local file")
        p.set_defaults(func=func)
        return p

    add("authorize", cmd_authorize, "Open the browser to authorize Shotty with Dropbox")
    add("config", cmd_config, "Print the current configuration")
    add("config-file", cmd_config_file, "Print the config file path")
    add("create-url", cmd_create_url, "Create a new shared link for a file", file=True)
    add("dropbox-status", cmd_dropbox_status, "Exit 0 if Dropbox is running, 1 otherwise")
    add("get-url", cmd_get_url, "Print an existing shared link for a file", file=True)
    add(
        "mv-last-screenshot",
        cmd_mv_last_screenshot,
        "Move the newest desktop screenshot into Dropbox and copy its link",
    )
    add("plist", cmd_plist, "Print the launchd agent definition")
    add("plist-file", cmd_plist_file, "Print where the launchd agent definition goes")
    add("upload", cmd_upload, "Upload a file and print its new shared link", file=True)
    add("url", cmd_url, "Print a shared link for a file, creating it if needed", file=True)
    add("usage", cmd_usage, "Show Dropbox space usage")
    add("version", cmd_version, "Print the version")
    sub.add_parser("help", help="Show this help")
    return parser


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv``, run the command, and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else "WARNING", console=err)

    if args.command in (None, "help"):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except ShottyError as exc:
        err.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    except httpx.HTTPError as exc:
        err.print(f"[red]Network error:[/red] {escape(str(exc))}")
        return 1


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
