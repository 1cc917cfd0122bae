"""MySQL engine and sessions shared by the HTTP API and the Socket.IO hub."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lounge.core.config import settings

engine = create_async_engine(
    settings.database.async_url,
    connect_args=settings.database.connect_args,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
    pool_pre_ping=True,
    echo=settings.app.debug,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base for the `users` and `messages` tables."""


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, committed when the endpoint returns cleanly."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
