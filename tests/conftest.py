"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from collections.abc import AsyncGenerator  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from typing import Any  # noqa: E402

import fakeredis.aioredis  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lounge.core.database import Base  # noqa: E402
from lounge.core.rate_limit import limiter  # noqa: E402
from lounge.core.security import hash_password  # noqa: E402
from lounge.models.message import Message  # noqa: E402, F401
from lounge.models.user import User  # noqa: E402
from lounge.realtime.hub import ChatHub  # noqa: E402
from lounge.services.session_service import SessionService  # noqa: E402

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Start every test with empty slowapi counters."""
    limiter.reset()


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def patch_redis(
    fake_redis: fakeredis.aioredis.FakeRedis, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Patch the global redis_client read by get_redis()."""
    monkeypatch.setattr("lounge.core.redis.redis_client", fake_redis)


@pytest.fixture
def session_service(fake_redis: fakeredis.aioredis.FakeRedis) -> SessionService:
    """Create a SessionService backed by fake Redis."""
    return SessionService(fake_redis)


# --- App override & client fixtures ---


def _get_app():  # type: ignore[no-untyped-def]
    """Import app lazily and apply overrides."""
    from lounge.core.database import get_async_session as original_dep
    from lounge.main import app

    app.dependency_overrides[original_dep] = override_get_async_session
    return app


@pytest.fixture
async def async_client(
    fake_redis: fakeredis.aioredis.FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    application = _get_app()
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup_and_login(
    client: AsyncClient, username: str = "alice", password: str = "Secret123"
) -> None:
    """Register through the API and keep the session cookie on ``client``."""
    await client.post("/signup", json={"username": username, "password": password})
    resp = await client.post(
        "/login", json={"username": username, "password": password}
    )
    assert resp.status_code == 200


@pytest.fixture
async def authed_client(
    async_client: AsyncClient,
) -> AsyncClient:
    """Client holding a live session for user ``alice``."""
    await signup_and_login(async_client)
    return async_client


# --- DB session for tests ---


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session


async def create_user(
    session: AsyncSession,
    username: str,
    password: str = "Secret123",
    status: str = "online",
) -> User:
    """Insert a user with a real bcrypt hash."""
    user = User(
        username=username,
        password=await hash_password(password),
        status=status,
    )
    session.add(user)
    await session.commit()
    return user


# --- Socket.IO test double ---


@dataclass(frozen=True)
class Emitted:
    """One recorded emit call."""

    event: str
    data: Any
    to: str | None
    skip_sid: str | None


class FakeSocketServer:
    """Records handler registration and emits like socketio.AsyncServer."""

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.emitted: list[Emitted] = []

    def on(self, event: str, handler: Any = None, namespace: str | None = None) -> None:
        self.handlers[event] = handler

    async def emit(
        self,
        event: str,
        data: Any = None,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
        namespace: str | None = None,
    ) -> None:
        self.emitted.append(Emitted(event, data, to or room, skip_sid))

    def events(self, name: str) -> list[Emitted]:
        return [e for e in self.emitted if e.event == name]

    def clear(self) -> None:
        self.emitted.clear()


COOKIE_NAME = "lounge_session"


async def _resolve_test_cookie(cookie: str | None) -> str | None:
    """Test cookies are ``tok-<username>``."""
    if cookie and cookie.startswith("tok-"):
        return cookie[4:]
    return None


@pytest.fixture
def fake_sio() -> FakeSocketServer:
    return FakeSocketServer()


@pytest.fixture
def hub(fake_sio: FakeSocketServer) -> ChatHub:
    """ChatHub wired to the fake socket server and the SQLite test DB."""
    return ChatHub(
        fake_sio,  # type: ignore[arg-type]
        session_factory=test_session_factory,
        resolve_session=_resolve_test_cookie,
        cookie_name=COOKIE_NAME,
        admin_username="admin",
    )


async def join(hub: ChatHub, sid: str, username: str) -> None:
    """Connect with a valid cookie and announce presence."""
    await hub.on_connect(sid, {"HTTP_COOKIE": f"{COOKIE_NAME}=tok-{username}"})
    await hub.on_user_joined(sid, username)
