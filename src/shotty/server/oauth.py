# AuthSession — Dropbox OAuth 2.0 authorization code flow with CSRF state.
# Created: 2026-10-03

from __future__ import annotations

import hmac
import logging
import urllib.parse
from dataclasses import dataclass

import httpx

from shotty.config import ServerSettings
from shotty.errors import ProviderDenied, StateMismatch
from shotty.server.sessions import Session, SessionState

logger = logging.getLogger(__name__)

DROPBOX_AUTH_URL = "https://www.dropbox.com/oauth2/authorize"
DROPBOX_TOKEN_URL = "https://api.dropboxapi.com/oauth2/token"


@dataclass(frozen=True)
class TokenExchangeResult:
    """Outcome of a code exchange: an access token or an error code, never both."""

    access_token: str | None = None
    error_code: str | None = None

    def __post_init__(self) -> None:
        if (self.access_token is None) == (self.error_code is None):
            raise ValueError("Exactly one of access_token or error_code must be set")

    @property
    def ok(self) -> bool:
        return self.access_token is not None


class AuthSession:
    """Drives the authorization code flow for one browser session at a time.

    The CSRF token lives on the :class:`Session`; this class only reads and
    advances it, so a single instance serves every session.
    """

    def __init__(self, settings: ServerSettings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def build_auth_url(self, state: str) -> str:
        params = {
            "client_id": self.settings.app_key,
            "redirect_uri": self.settings.callback_url,
            "response_type": "code",
            "state": state,
        }
        return f"{DROPBOX_AUTH_URL}?{urllib.parse.urlencode(params)}"

    def begin_authorization(self, session: Session) -> str:
        """Return the Dropbox authorization URL to redirect the browser to.

        Repeated calls in the same session reuse the same state value.
        """
        state = session.ensure_csrf_token()
        session.state = SessionState.AUTHORIZING
        return self.build_auth_url(state)

    async def complete_authorization(
        self,
        session: Session,
        returned_state: str | None,
        code: str | None,
        error: str | None = None,
    ) -> TokenExchangeResult:
        """Verify the callback and exchange the code for an access token.

        Raises:
            StateMismatch: ``returned_state`` is empty or differs from the session's token.
            ProviderDenied: Dropbox sent back an ``error`` parameter.
        """
        expected = session.csrf_token
        awaiting = session.state is SessionState.AUTHORIZING
        session.state = SessionState.COMPLETED

        if not returned_state or not expected or not awaiting:
            raise StateMismatch()
        if not hmac.compare_digest(returned_state.encode(), expected.encode()):
            raise StateMismatch()

        if error:
            logger.info("Authorization denied by Dropbox: %s", error)
            raise ProviderDenied(error)

        if not code:
            return TokenExchangeResult(error_code="missing_code")

        return await self.exchange_code(code)

    async def exchange_code(self, code: str) -> TokenExchangeResult:
        """POST the authorization code to Dropbox's token endpoint."""
        async with httpx.AsyncClient(
            timeout=self.settings.http_timeout, transport=self._transport
        ) as client:
            resp = await client.post(
                DROPBOX_TOKEN_URL,
                data={
                    "client_id": self.settings.app_key,
                    "client_secret": self.settings.app_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": self.settings.callback_url,
                },
            )

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        token = data.get("access_token")
        if token:
            logger.info("Obtained Dropbox access token for account %s", data.get("account_id", "?"))
            return TokenExchangeResult(access_token=token)

        error_code = data.get("error") or f"http_{resp.status_code}"
        logger.warning("Token exchange failed: %s", error_code)
        return TokenExchangeResult(error_code=str(error_code))
