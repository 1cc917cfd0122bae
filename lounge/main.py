"""ASGI application entry point.

``asgi_app`` serves Socket.IO under ``/socket.io/`` and hands every other
request to the FastAPI ``app``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from lounge.api.common.auth_router import router as auth_router
from lounge.api.common.page_router import STATIC_DIR
from lounge.api.common.page_router import router as page_router
from lounge.api.message_router import router as message_router
from lounge.api.user_router import router as user_router
from lounge.core.config import settings
from lounge.core.database import Base, async_session_factory, engine
from lounge.core.exceptions import (
    AppException,
    app_exception_handler,
    database_exception_handler,
    validation_exception_handler,
)
from lounge.core.middleware import AuthMiddleware
from lounge.core.rate_limit import limiter, rate_limit_exceeded_handler
from lounge.core.redis import close_redis, get_redis, init_redis
from lounge.models import message, user  # noqa: F401
from lounge.realtime.hub import ChatHub
from lounge.realtime.peer_signaling import router as peer_router
from lounge.schemas.response_schema import ApiResponse, success_response
from lounge.services.session_service import SessionService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        bind=settings.server.bind,
    )
    await init_redis()
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Chat, presence and voice signaling backend",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.app.debug,
)

app.state.limiter = limiter

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(SQLAlchemyError, database_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(AuthMiddleware)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


# Register routers
app.include_router(page_router)
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(message_router)
app.include_router(peer_router)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


async def resolve_session(cookie: str | None) -> str | None:
    """Username behind a session cookie, for socket handshakes."""
    return await SessionService(get_redis()).resolve(cookie)


socket_origins = settings.app.cors_origins_list
sio = socketio.AsyncServer(
    async_mode="asgi",
    # engine.io only treats the bare string as a wildcard
    cors_allowed_origins="*" if socket_origins == ["*"] else socket_origins,
)
hub = ChatHub(
    sio,
    session_factory=async_session_factory,
    resolve_session=resolve_session,
    cookie_name=settings.auth.session_cookie_name,
    admin_username=settings.chat.admin_username,
    max_message_length=settings.chat.max_message_length,
)
hub.register()

asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


def run() -> None:
    """Serve ``asgi_app`` with uvicorn."""
    uvicorn.run(
        "lounge.main:asgi_app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.is_development,
    )


if __name__ == "__main__":
    run()
