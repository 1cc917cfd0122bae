"""Profile queries and updates for the JSON API."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.core.exceptions import UserNotFoundError
from lounge.repositories.user_repo import UserRepository
from lounge.schemas.user_schema import AvatarUpdateRequest, UserProfile

logger = structlog.get_logger()


class UserService:
    """User directory and profile operations for the signed-in user."""

    def __init__(
        self, user_repo: UserRepository, session: AsyncSession, username: str
    ) -> None:
        self._user_repo = user_repo
        self._session = session
        self._username = username

    async def get_profile(self) -> UserProfile:
        """Return the signed-in user's profile."""
        user = await self._user_repo.find_by_username(self._username)
        if user is None:
            raise UserNotFoundError
        return UserProfile.model_validate(user)

    async def list_users(self) -> list[UserProfile]:
        """Return every registered user."""
        users = await self._user_repo.list_all()
        return [UserProfile.model_validate(u) for u in users]

    async def update_avatar(self, request: AvatarUpdateRequest) -> UserProfile:
        """Store a new avatar URL for the signed-in user."""
        user = await self._user_repo.find_by_username(self._username)
        if user is None:
            raise UserNotFoundError
        url = str(request.avatar_url)
        await self._user_repo.update_avatar(user.id, url)
        await self._session.commit()
        logger.info("Avatar updated", username=self._username)
        return UserProfile(username=user.username, avatar_url=url, status=user.status)

    async def set_status(self, status: str) -> None:
        """Persist a user-selected status."""
        user = await self._user_repo.find_by_username(self._username)
        if user is None:
            raise UserNotFoundError
        await self._user_repo.update_status(user.id, status)
        await self._session.commit()
