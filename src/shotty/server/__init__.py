# Shotty OAuth Server
# Created: 2026-10-03
#
# Browser-facing Dropbox authorization code flow. Run with ``shotty-server``.

from shotty.server.oauth import AuthSession, TokenExchangeResult
from shotty.server.sessions import Session, SessionState, SessionStore

__all__ = [
    "AuthSession",
    "Session",
    "SessionState",
    "SessionStore",
    "TokenExchangeResult",
]
