"""Global dependencies for the application."""

from fastapi import Depends, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.core.config import settings
from lounge.core.database import get_async_session
from lounge.core.exceptions import AuthenticationError
from lounge.core.redis import get_redis
from lounge.repositories.message_repo import MessageRepository
from lounge.repositories.user_repo import UserRepository
from lounge.services.auth_service import AuthService
from lounge.services.message_service import MessageService
from lounge.services.session_service import SessionService
from lounge.services.user_service import UserService


class CurrentUser(BaseModel):
    """Authenticated user extracted from request state."""

    model_config = ConfigDict(frozen=True)

    username: str


def get_session_service() -> SessionService:
    """Get SessionService backed by the active Redis client."""
    return SessionService(get_redis())


def get_user_repository(
    session: AsyncSession = Depends(get_async_session),
) -> UserRepository:
    """Get UserRepository bound to the current session."""
    return UserRepository(session)


def get_message_repository(
    session: AsyncSession = Depends(get_async_session),
) -> MessageRepository:
    """Get MessageRepository bound to the current session."""
    return MessageRepository(session)


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    session_service: SessionService = Depends(get_session_service),
    session: AsyncSession = Depends(get_async_session),
) -> AuthService:
    """Get AuthService with all dependencies."""
    return AuthService(
        user_repo=user_repo,
        session_service=session_service,
        session=session,
    )


def get_optional_user(request: Request) -> CurrentUser | None:
    """The session user, if the middleware resolved one."""
    username = getattr(request.state, "username", None)
    if username is None:
        return None
    return CurrentUser(username=username)


def get_current_user(
    user: CurrentUser | None = Depends(get_optional_user),
) -> CurrentUser:
    """Extract the authenticated user from middleware-populated state."""
    if user is None:
        raise AuthenticationError
    return user


def get_user_service(
    user_repo: UserRepository = Depends(get_user_repository),
    session: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserService:
    """Get UserService for the authenticated user."""
    return UserService(
        user_repo=user_repo, session=session, username=current_user.username
    )


def get_message_service(
    message_repo: MessageRepository = Depends(get_message_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    session: AsyncSession = Depends(get_async_session),
) -> MessageService:
    """Get MessageService bound to the current session."""
    return MessageService(
        message_repo=message_repo,
        user_repo=user_repo,
        session=session,
        admin_username=settings.chat.admin_username,
    )
