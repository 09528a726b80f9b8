"""Shotty OAuth server.

A tiny FastAPI app that walks a browser through Dropbox's authorization code
flow and shows the resulting access token so it can be pasted into the client
config. Tokens are never stored server-side.
"""

from __future__ import annotations

import argparse
import html
import logging
import time

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from shotty.config import ServerSettings
from shotty.errors import ConfigInvalid, ProviderDenied, StateMismatch
from shotty.logging_setup import setup_logging
from shotty.server.oauth import AuthSession
from shotty.server.sessions import SessionStore

logger = logging.getLogger(__name__)

SESSION_COOKIE = "shotty_session"

_PAGE_HTML = """<!DOCTYPE html>
<html><head><meta charset="utf-8"><title>Shotty</title>
<style>
body {{ font-family: system-ui; max-width: 560px; margin: 40px auto; padding: 20px; }}
code {{ background: #f3f4f6; padding: 8px; border-radius: 6px; display: block;
  word-break: break-all; }}
.btn {{ background: #0061fe; color: white; padding: 10px 24px; border-radius: 6px;
  text-decoration: none; }}
</style></head><body>
{body}
</body></html>"""

_INDEX_BODY = """<h2>Shotty</h2>
<p>Share screenshots through Dropbox shared links.</p>
<p><a class="btn" href="/authorize">Connect Dropbox</a></p>"""

_TOKEN_BODY = """<h2>Dropbox connected</h2>
<p>Add this token to your shotty config file:</p>
<code>{{"token": "{token}"}}</code>
<p>Run <strong>shotty config-file</strong> to see where that file lives.</p>"""

_ERROR_BODY = """<h2>{title}</h2>
<p>{message}</p>
<p><a href="/authorize">Try again</a></p>"""


def _page(body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(_PAGE_HTML.format(body=body), status_code=status_code)


def _error_page(title: str, message: str, status_code: int) -> HTMLResponse:
    return _page(
        _ERROR_BODY.format(title=html.escape(title), message=html.escape(message)),
        status_code=status_code,
    )


def create_app(
    settings: ServerSettings | None = None,
    auth: AuthSession | None = None,
    store: SessionStore | None = None,
) -> FastAPI:
    """Build the OAuth server app."""
    if settings is None:
        settings = ServerSettings.from_env()
    if auth is None:
        auth = AuthSession(settings)
    if store is None:
        store = SessionStore(ttl=settings.session_ttl)

    app = FastAPI(title="Shotty", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.auth = auth
    app.state.sessions = store
    secure_cookie = settings.callback_url.startswith("https://")

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return _page(_INDEX_BODY)

    @app.get("/robots.txt", response_class=PlainTextResponse)
    async def robots():
        return "User-agent: *\nDisallow: /\n"

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/authorize")
    async def authorize(request: Request):
        session = store.get_or_create(request.cookies.get(SESSION_COOKIE))
        response = RedirectResponse(auth.begin_authorization(session), status_code=302)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session.session_id,
            max_age=max(0, int(session.expires_at - time.time())),
            httponly=True,
            samesite="lax",
            secure=secure_cookie,
            path="/",
        )
        return response

    @app.get("/callback")
    async def callback(
        request: Request,
        state: str = Query(""),
        code: str = Query(""),
        error: str = Query(""),
    ):
        session = store.get(request.cookies.get(SESSION_COOKIE))
        try:
            if session is None:
                raise StateMismatch()
            result = await auth.complete_authorization(session, state, code, error or None)
        except StateMismatch:
            return _error_page("Not found", "This authorization link is not valid.", 404)
        except ProviderDenied as exc:
            return _error_page("Authorization failed", exc.error, 400)
        except httpx.HTTPError as exc:
            logger.warning("Token exchange request failed: %s", exc)
            return _error_page("Authorization failed", "Could not reach Dropbox.", 502)

        if not result.ok:
            return _error_page(
                "Authorization failed",
                f"Dropbox did not return a token ({result.error_code}).",
                502,
            )
        return _page(_TOKEN_BODY.format(token=html.escape(result.access_token)))

    return app


def main() -> None:
    """Entry point for ``shotty-server``."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Shotty Dropbox OAuth server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=8888, help="Port (default: 8888)")
    parser.add_argument("--dev", action="store_true", help="Development mode with auto-reload")
    args = parser.parse_args()

    setup_logging(level="DEBUG" if args.dev else "INFO")

    try:
        settings = ServerSettings.from_env()
    except ConfigInvalid as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    if args.dev:
        uvicorn.run(
            "shotty.server.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            log_level="debug",
        )
    else:
        uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
