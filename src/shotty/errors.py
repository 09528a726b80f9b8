# Errors — exception hierarchy and Dropbox error classification.
# Created: 2026-10-02

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Categories of Dropbox API failures."""

    PATH_CONFLICT = "path_conflict"
    ACCESS_DENIED = "access_denied"
    INVALID_TOKEN = "invalid_token"
    NOT_FOUND = "not_found"
    SHARED_LINK_EXISTS = "shared_link_exists"
    GENERIC_API_ERROR = "generic_api_error"


# Tag-path prefixes of Dropbox ``error_summary`` values, checked in order.
_ERROR_TAGS: list[tuple[tuple[str, ...], ErrorKind]] = [
    (("path", "conflict"), ErrorKind.PATH_CONFLICT),
    (("to", "conflict"), ErrorKind.PATH_CONFLICT),
    (("path", "not_found"), ErrorKind.NOT_FOUND),
    (("path_lookup", "not_found"), ErrorKind.NOT_FOUND),
    (("not_found",), ErrorKind.NOT_FOUND),
    (("shared_link_already_exists",), ErrorKind.SHARED_LINK_EXISTS),
    (("invalid_access_token",), ErrorKind.INVALID_TOKEN),
    (("expired_access_token",), ErrorKind.INVALID_TOKEN),
    (("missing_scope",), ErrorKind.ACCESS_DENIED),
    (("access_denied",), ErrorKind.ACCESS_DENIED),
    (("no_permission",), ErrorKind.ACCESS_DENIED),
    (("path", "no_write_permission"), ErrorKind.ACCESS_DENIED),
    (("email_not_verified",), ErrorKind.ACCESS_DENIED),
]

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.PATH_CONFLICT: "A file already exists at that path in Dropbox",
    ErrorKind.ACCESS_DENIED: "Dropbox denied access to that path",
    ErrorKind.INVALID_TOKEN: (
        "Your Dropbox token is invalid or expired. Run `shotty authorize` to get a new one"
    ),
    ErrorKind.NOT_FOUND: "Dropbox could not find that file. Has it finished syncing?",
    ErrorKind.SHARED_LINK_EXISTS: "A shared link already exists for that file",
    ErrorKind.GENERIC_API_ERROR: "Dropbox API error",
}


def classify_error(summary: str) -> ErrorKind:
    """Map a Dropbox ``error_summary`` such as ``path/conflict/file/..`` to an ErrorKind.

    Unrecognized summaries fall back to ``GENERIC_API_ERROR``.
    """
    tags = tuple(tag for tag in summary.strip().rstrip(".").split("/") if tag and tag != "..")
    for prefix, kind in _ERROR_TAGS:
        if tags[: len(prefix)] == prefix:
            return kind
    return ErrorKind.GENERIC_API_ERROR


class ShottyError(Exception):
    """Base class for every failure reported to the user."""


class ConfigInvalid(ShottyError):
    """Configuration file missing, malformed, or inconsistent."""


class LocalFileMissing(ShottyError):
    """A local file the operation needs does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class StateMismatch(ShottyError):
    """The OAuth ``state`` returned to the callback does not match the session."""

    def __init__(self) -> None:
        super().__init__("Authorization state is missing or does not match this session")


class ProviderDenied(ShottyError):
    """Dropbox returned an ``error`` parameter to the callback."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(error)


class DropboxApiError(ShottyError):
    """A Dropbox API call failed; ``kind`` drives retry and messaging."""

    def __init__(self, summary: str, kind: ErrorKind | None = None, path: str | None = None):
        self.summary = summary
        self.kind = kind if kind is not None else classify_error(summary)
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        message = _MESSAGES[self.kind]
        if self.path:
            message = f"{message}: {self.path}"
        return f"{message} ({self.summary})"

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND


class RetriesExhausted(DropboxApiError):
    """NOT_FOUND persisted through every retry."""

    def __init__(self, summary: str, attempts: int, path: str | None = None):
        self.attempts = attempts
        super().__init__(summary, kind=ErrorKind.GENERIC_API_ERROR, path=path)

    def _format(self) -> str:
        target = f" for {self.path}" if self.path else ""
        return (
            f"Gave up after {self.attempts} attempts{target}; "
            f"Dropbox still reports {self.summary}"
        )


class SharedLinkMissing(ShottyError):
    """No shared link exists and the caller asked not to create one."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No shared link exists for {path}")
