"""Cookie sessions backed by Redis, plus failed-login bookkeeping.

The browser holds a signed JWT naming a session id; the session itself lives
in Redis so logout and expiry take effect server-side.
"""

import uuid
from datetime import UTC, datetime, timedelta

import jwt
import redis.asyncio as redis

from lounge.core.config import settings
from lounge.core.exceptions import InvalidSessionError
from lounge.schemas.auth_schema import SessionPayload

SESSION_PREFIX = "session:"
LOGIN_ATTEMPTS_PREFIX = "login_attempts:"

MAX_LOGIN_ATTEMPTS = 5
LOGIN_LOCKOUT_SECONDS = 300


class SessionService:
    """Issue, resolve and destroy login sessions."""

    def __init__(self, redis_client: redis.Redis) -> None:  # type: ignore[type-arg]
        self._redis = redis_client
        self._secret = settings.auth.session_secret.get_secret_value()
        self._algorithm = settings.auth.session_algorithm
        self._ttl = settings.auth.session_ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def create_session(self, username: str) -> str:
        """Store a new session and return the signed cookie value."""
        sid = uuid.uuid4().hex
        now = datetime.now(UTC)
        payload = {
            "sid": sid,
            "sub": username,
            "iat": now,
            "exp": now + timedelta(seconds=self._ttl),
        }
        await self._redis.setex(f"{SESSION_PREFIX}{sid}", self._ttl, username)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode_cookie(self, token: str) -> SessionPayload:
        """Validate the cookie signature and expiry."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
            return SessionPayload(
                sid=payload["sid"], sub=payload["sub"], exp=payload["exp"]
            )
        except (jwt.InvalidTokenError, KeyError) as e:
            raise InvalidSessionError from e

    async def resolve(self, token: str | None) -> str | None:
        """Return the username for a live session, or None."""
        if not token:
            return None
        try:
            payload = self.decode_cookie(token)
        except InvalidSessionError:
            return None
        username = await self._redis.get(f"{SESSION_PREFIX}{payload.sid}")
        if username is None or username != payload.sub:
            return None
        return username

    async def destroy(self, token: str | None) -> None:
        """Delete the server-side session; unknown cookies are ignored."""
        if not token:
            return
        try:
            payload = self.decode_cookie(token)
        except InvalidSessionError:
            return
        await self._redis.delete(f"{SESSION_PREFIX}{payload.sid}")

    # --- Login attempts ---

    async def record_failed_login(self, client: str) -> int:
        """Record a failed login attempt, return total count."""
        key = f"{LOGIN_ATTEMPTS_PREFIX}{client}"
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, LOGIN_LOCKOUT_SECONDS)
        return int(count)

    async def reset_login_attempts(self, client: str) -> None:
        """Clear failed login attempts after successful login."""
        await self._redis.delete(f"{LOGIN_ATTEMPTS_PREFIX}{client}")

    async def get_login_attempts(self, client: str) -> int:
        """Get current failed login attempt count."""
        result = await self._redis.get(f"{LOGIN_ATTEMPTS_PREFIX}{client}")
        return int(result) if result else 0
