"""Authentication business logic."""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.core.exceptions import (
    AccountLockedError,
    InvalidCredentialsError,
    UsernameUnavailableError,
)
from lounge.core.security import DUMMY_HASH, hash_password, verify_password
from lounge.repositories.user_repo import UserRepository
from lounge.schemas.auth_schema import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SignupRequest,
)
from lounge.services.session_service import MAX_LOGIN_ATTEMPTS, SessionService

logger = structlog.get_logger()


class AuthService:
    """Orchestrates signup, login and logout."""

    def __init__(
        self,
        user_repo: UserRepository,
        session_service: SessionService,
        session: AsyncSession,
    ) -> None:
        self._user_repo = user_repo
        self._session_service = session_service
        self._session = session

    async def signup(self, request: SignupRequest) -> MessageResponse:
        """Create an account with a hashed password."""
        if await self._user_repo.exists_by_username(request.username):
            logger.info("Signup rejected: username unavailable")
            raise UsernameUnavailableError

        hashed = await hash_password(request.password)
        try:
            user = await self._user_repo.create(
                username=request.username,
                hashed_password=hashed,
            )
            await self._session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent signup for the same name
            await self._session.rollback()
            raise UsernameUnavailableError from e

        logger.info("User signed up", username=user.username, user_id=user.id)
        return MessageResponse(message="User created! Login now.")

    async def login(
        self, request: LoginRequest, client: str
    ) -> tuple[LoginResponse, str]:
        """Authenticate and open a session. Returns the result and cookie value."""
        attempts = await self._session_service.get_login_attempts(client)
        if attempts >= MAX_LOGIN_ATTEMPTS:
            raise AccountLockedError

        user = await self._user_repo.find_by_username(request.username)

        if user is None:
            await verify_password(request.password, DUMMY_HASH)
            await self._session_service.record_failed_login(client)
            raise InvalidCredentialsError

        if not await verify_password(request.password, user.password):
            await self._session_service.record_failed_login(client)
            raise InvalidCredentialsError

        await self._session_service.reset_login_attempts(client)
        cookie = await self._session_service.create_session(user.username)
        logger.info("User logged in", username=user.username, user_id=user.id)

        return LoginResponse(username=user.username), cookie

    async def logout(self, cookie: str | None) -> None:
        """Destroy the server-side session for this cookie."""
        await self._session_service.destroy(cookie)
        logger.info("User logged out")
