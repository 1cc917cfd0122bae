"""Process-wide Redis client for the session store.

Opened in the app lifespan and read through ``get_redis()`` by the session
middleware, the auth dependencies and the Socket.IO handshake.
"""

import redis.asyncio as redis
import structlog

from lounge.core.config import settings

logger = structlog.get_logger()

redis_client: redis.Redis | None = None  # type: ignore[type-arg]


async def init_redis() -> redis.Redis:  # type: ignore[type-arg]
    """Connect to the session store and fail fast if it is unreachable."""
    global redis_client  # noqa: PLW0603
    redis_client = redis.from_url(settings.redis.url, decode_responses=True)
    await redis_client.ping()
    logger.info("Session store connected", url=settings.redis.display_url)
    return redis_client


async def close_redis() -> None:
    global redis_client  # noqa: PLW0603
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


def get_redis() -> redis.Redis:  # type: ignore[type-arg]
    """The session store client; raises before the lifespan has run."""
    if redis_client is None:
        raise RuntimeError("Session store not initialized")
    return redis_client
