# Link Resolver — map local files to Dropbox paths and find-or-create shared links.
# Created: 2026-10-06

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from shotty.config import Settings
from shotty.dropbox import DropboxClient
from shotty.errors import DropboxApiError, LocalFileMissing, RetriesExhausted, SharedLinkMissing
from shotty.system import dropbox_running

logger = logging.getLogger(__name__)

DIRECT_CONTENT_HOST = "dl.dropboxusercontent.com"
_PREVIEW_HOSTS = {"www.dropbox.com", "dropbox.com"}

MONTH_FORMAT = "%Y-%m"


class LinkMode(StrEnum):
    FIND_ONLY = "find_only"
    CREATE_ONLY = "create_only"
    FIND_THEN_CREATE = "find_then_create"


@dataclass
class RemoteFileReference:
    """A local file and where it lives in the Dropbox namespace."""

    local_path: Path
    remote_path: str
    shared_link: str | None = None


def normalize_url(url: str) -> str:
    """Point a shared link at the raw file: swap the preview host and drop the query."""
    parts = urlsplit(url)
    netloc = DIRECT_CONTENT_HOST if parts.netloc.lower() in _PREVIEW_HOSTS else parts.netloc
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class LinkResolver:
    """Shared links and uploads for files under the Dropbox root.

    ``retry_delay``, ``sleep`` and ``sync_running`` are injectable so the retry
    loop can be driven without waiting or a running Dropbox.
    """

    def __init__(
        self,
        client: DropboxClient,
        settings: Settings,
        retry_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        sync_running: Callable[[], bool] = dropbox_running,
    ):
        self.client = client
        self.settings = settings
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self._sleep = sleep
        self._sync_running = sync_running

    # ── Paths ───────────────────────────────────────────────────────────

    def resolve_remote_path(self, local_path: str | Path) -> str:
        """Absolute local path with the Dropbox root prefix stripped.

        The root itself maps to "" (the Dropbox root). Paths outside the root
        are returned unchanged.
        """
        absolute = str(Path(local_path).expanduser().absolute())
        root = str(self.settings.dropbox_root).rstrip("/")
        if absolute == root:
            return ""
        if absolute.startswith(root + "/"):
            return absolute[len(root) :]
        return absolute

    def reference(self, local_path: str | Path) -> RemoteFileReference:
        local = Path(local_path).expanduser().absolute()
        return RemoteFileReference(local_path=local, remote_path=self.resolve_remote_path(local))

    def upload_destination(self, local_file: Path, now: datetime | None = None) -> str:
        """Remote path for an upload: ``<screenshot dir>/<YYYY-MM>/<name>``."""
        month = (now or datetime.now()).strftime(MONTH_FORMAT)
        base = self.resolve_remote_path(self.settings.screenshot_directory).rstrip("/")
        return f"{base}/{month}/{local_file.name}"

    # ── Shared links ────────────────────────────────────────────────────

    def _request_link(self, remote_path: str, mode: LinkMode) -> str:
        if mode is not LinkMode.CREATE_ONLY:
            links = self.client.list_shared_links(remote_path)
            if links:
                logger.debug("Found existing shared link for %s", remote_path)
                return links[0]["url"]
            if mode is LinkMode.FIND_ONLY:
                raise SharedLinkMissing(remote_path)
        logger.debug("Creating shared link for %s", remote_path)
        return self.client.create_shared_link(remote_path)["url"]

    def _can_retry(self, exc: DropboxApiError, ref: RemoteFileReference, retries_left: int) -> bool:
        if not exc.retryable or retries_left <= 0:
            return False
        if not ref.local_path.exists():
            logger.debug("Not retrying: %s no longer exists locally", ref.local_path)
            return False
        if not self._sync_running():
            logger.debug("Not retrying: Dropbox is not running")
            return False
        return True

    def get_or_create_shared_link(
        self,
        file: str | Path | RemoteFileReference,
        mode: LinkMode = LinkMode.FIND_THEN_CREATE,
        max_retries: int = 0,
    ) -> str:
        """Return a normalized public link for ``file``.

        A NOT_FOUND answer (usually: Dropbox hasn't synced the file yet) is
        retried up to ``max_retries`` times while the file exists locally and
        Dropbox is running, sleeping ``retry_delay`` seconds in between. Any
        other error is raised immediately.
        """
        retries_left = max_retries
        attempts = 0
        while True:
            ref = file if isinstance(file, RemoteFileReference) else self.reference(file)
            attempts += 1
            try:
                url = self._request_link(ref.remote_path, mode)
            except DropboxApiError as exc:
                if not self._can_retry(exc, ref, retries_left):
                    if exc.retryable and max_retries > 0 and retries_left == 0:
                        raise RetriesExhausted(exc.summary, attempts, path=ref.remote_path) from exc
                    raise
                retries_left -= 1
                logger.info(
                    "%s not in Dropbox yet, retrying in %.0fs (%d left)",
                    ref.remote_path,
                    self.retry_delay,
                    retries_left,
                )
                self._sleep(self.retry_delay)
                continue

            ref.shared_link = normalize_url(url)
            return ref.shared_link

    # ── Uploads ─────────────────────────────────────────────────────────

    def upload(self, local_file: str | Path, now: datetime | None = None) -> str:
        """Upload a file into this month's screenshot folder and return a new link."""
        local = Path(local_file).expanduser().absolute()
        if not local.is_file():
            raise LocalFileMissing(str(local))

        destination = self.upload_destination(local, now)
        metadata = self.client.upload(local, destination)
        remote_path = metadata.get("path_display") or destination
        logger.info("Uploaded %s to %s", local.name, remote_path)

        ref = RemoteFileReference(local_path=local, remote_path=remote_path)
        return self.get_or_create_shared_link(ref, LinkMode.CREATE_ONLY, max_retries=0)
