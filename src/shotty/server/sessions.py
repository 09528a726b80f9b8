# Session Store — in-memory, TTL-scoped browser sessions for the OAuth server.
# Created: 2026-10-03
#
# Each browser gets an opaque session id in a cookie. Sessions hold the CSRF
# token used as the OAuth ``state`` and expire after a fixed TTL.

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 900


class SessionState(StrEnum):
    FRESH = "fresh"
    AUTHORIZING = "authorizing"
    COMPLETED = "completed"


@dataclass
class Session:
    """One browser session."""

    session_id: str
    expires_at: float
    csrf_token: str | None = None
    state: SessionState = SessionState.FRESH
    created_at: float = field(default_factory=time.time)

    def is_expired(self, now: float | None = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at

    def ensure_csrf_token(self) -> str:
        """Mint the CSRF token once; later calls return the same value."""
        if self.csrf_token is None:
            self.csrf_token = secrets.token_urlsafe(32)
        return self.csrf_token


class SessionStore:
    """Sessions keyed by id. No state is shared between keys."""

    def __init__(self, ttl: int = SESSION_TTL_SECONDS):
        self.ttl = ttl
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> Session:
        now = time.time()
        session = Session(
            session_id=secrets.token_urlsafe(24),
            expires_at=now + self.ttl,
            created_at=now,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str | None) -> Session | None:
        """Return a live session, dropping it if it has expired."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_expired():
            self._sessions.pop(session_id, None)
            logger.debug("Session %s… expired", session_id[:6])
            return None
        return session

    def get_or_create(self, session_id: str | None) -> Session:
        session = self.get(session_id)
        if session is None:
            self.cleanup()
            session = self.create()
        return session

    def invalidate(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def cleanup(self) -> int:
        """Remove expired sessions. Returns count removed."""
        now = time.time()
        expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)
