# Dropbox Client — HTTP client for the Dropbox v2 API using a bearer token.
# Created: 2026-10-05

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from shotty.errors import DropboxApiError, ErrorKind

logger = logging.getLogger(__name__)

_API_BASE = "https://api.dropboxapi.com/2"
_CONTENT_BASE = "https://content.dropboxapi.com/2"


def _error_summary(resp: httpx.Response) -> str:
    """Pull ``error_summary`` out of a failed response, falling back to the raw body."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        if data.get("error_summary"):
            return str(data["error_summary"])
        if isinstance(data.get("error"), str):
            return data["error"]
    text = resp.text.strip()
    return text or f"http_{resp.status_code}"


class DropboxClient:
    """Blocking client for the handful of Dropbox endpoints shotty uses.

    One request at a time; every failure becomes a classified DropboxApiError.
    """

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {token}"},
        )

    def __enter__(self) -> DropboxClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _post(
        self,
        url: str,
        *,
        path: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        resp = self._http.post(url, **kwargs)
        if resp.is_success:
            try:
                return resp.json()
            except ValueError as exc:
                logger.debug("Dropbox %s returned a non-JSON body (%s)", url, resp.status_code)
                raise DropboxApiError(
                    f"http_{resp.status_code}", kind=ErrorKind.GENERIC_API_ERROR, path=path
                ) from exc
        summary = _error_summary(resp)
        logger.debug("Dropbox %s failed (%s): %s", url, resp.status_code, summary)
        raise DropboxApiError(summary, path=path)

    def _rpc(self, endpoint: str, payload: Any, path: str | None = None) -> dict[str, Any]:
        return self._post(
            f"{_API_BASE}/{endpoint}",
            path=path,
            content=json.dumps(payload),
            headers={"Content-Type": "application/json"},
        )

    def list_shared_links(self, path: str) -> list[dict[str, Any]]:
        """Shared links pointing directly at ``path``."""
        data = self._rpc(
            "sharing/list_shared_links", {"path": path, "direct_only": True}, path=path
        )
        return data.get("links", [])

    def create_shared_link(self, path: str) -> dict[str, Any]:
        """Create a public shared link for ``path``."""
        return self._rpc(
            "sharing/create_shared_link_with_settings",
            {"path": path, "settings": {"requested_visibility": "public"}},
            path=path,
        )

    def upload(self, local_file: Path, remote_path: str) -> dict[str, Any]:
        """Upload ``local_file`` to ``remote_path`` without overwriting or renaming.

        Returns the file metadata, including ``path_display``.
        """
        arg = {"path": remote_path, "mode": "add", "autorename": False}
        return self._post(
            f"{_CONTENT_BASE}/files/upload",
            path=remote_path,
            content=local_file.read_bytes(),
            headers={
                "Content-Type": "application/octet-stream",
                "Dropbox-API-Arg": json.dumps(arg),
            },
        )

    def get_space_usage(self) -> dict[str, Any]:
        return self._rpc("users/get_space_usage", None)
