"""User repository for database operations."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.models.user import User


class UserRepository:
    """Encapsulates user-related database queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_username(self, username: str) -> User | None:
        """Find a user by exact, case-sensitive username."""
        result = await self._session.execute(
            select(User).where(func.lower(User.username) == username.lower())
        )
        for user in result.scalars():
            if user.username == username:
                return user
        return None

    async def find_by_id(self, user_id: int) -> User | None:
        """Find a user by primary key."""
        result = await self._session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        """Check for a username, treating case variants as the same name."""
        result = await self._session.execute(
            select(User.id)
            .where(func.lower(User.username) == username.lower())
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create(
        self,
        username: str,
        hashed_password: str,
        avatar_url: str | None = None,
    ) -> User:
        """Create a new user record."""
        user = User(
            username=username,
            password=hashed_password,
            avatar_url=avatar_url,
            status="online",
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def list_all(self) -> list[User]:
        """All users ordered by username."""
        result = await self._session.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    async def update_status(self, user_id: int, status: str) -> None:
        """Persist a user-selected status."""
        await self._session.execute(
            update(User).where(User.id == user_id).values(status=status)
        )

    async def update_avatar(self, user_id: int, avatar_url: str) -> None:
        """Persist a new avatar URL."""
        await self._session.execute(
            update(User).where(User.id == user_id).values(avatar_url=avatar_url)
        )
