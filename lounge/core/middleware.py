"""ASGI session middleware."""

import json

from starlette.requests import cookie_parser
from starlette.types import ASGIApp, Receive, Scope, Send

from lounge.core.config import settings
from lounge.core.redis import get_redis
from lounge.services.session_service import SessionService

# Pages that bounce anonymous visitors to the login form
LOGIN_REQUIRED_PAGES: set[str] = {"/dashboard", "/chat"}

API_PREFIX = "/api/"


def session_cookie(headers: list[tuple[bytes, bytes]]) -> str | None:
    """Pull the session cookie out of raw ASGI headers."""
    raw = dict(headers).get(b"cookie", b"").decode("latin-1")
    if not raw:
        return None
    return cookie_parser(raw).get(settings.auth.session_cookie_name)


class AuthMiddleware:
    """Pure ASGI middleware resolving the session cookie to a username."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cookie = session_cookie(scope.get("headers", []))
        username = None
        if cookie:
            username = await SessionService(get_redis()).resolve(cookie)

        scope.setdefault("state", {})
        scope["state"]["username"] = username
        scope["state"]["session_cookie"] = cookie

        if username is None and scope.get("method", "") != "OPTIONS":
            path = scope["path"]
            normalized = path.rstrip("/") or "/"
            if normalized in LOGIN_REQUIRED_PAGES:
                await self._send_redirect(send, "/login")
                return
            if path.startswith(API_PREFIX):
                await self._send_error(
                    send, 401, "AUTHENTICATION_ERROR", "Not logged in."
                )
                return

        await self.app(scope, receive, send)

    @staticmethod
    async def _send_redirect(send: Send, location: str) -> None:
        """Send a 302 redirect directly."""
        await send(
            {
                "type": "http.response.start",
                "status": 302,
                "headers": [
                    [b"location", location.encode()],
                    [b"content-length", b"0"],
                ],
            }
        )
        await send({"type": "http.response.body", "body": b""})

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON error response directly."""
        body = json.dumps(
            {"success": False, "error": {"code": code, "message": message}}
        ).encode()

        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
