"""Chat history reads and the persistence side of realtime events."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from lounge.core.exceptions import (
    AuthorizationError,
    MessageNotFoundError,
    UserNotFoundError,
)
from lounge.models.message import Message
from lounge.repositories.message_repo import MessageRepository
from lounge.repositories.user_repo import UserRepository
from lounge.schemas.message_schema import ChatMessageResponse


@dataclass(frozen=True)
class StoredMessage:
    """A message as broadcast to clients."""

    id: int | str
    user_id: int | None
    username: str
    content: str
    created_at: datetime
    avatar_url: str | None = None

    def to_event(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.username,
            "content": self.content,
            "created_at": _isoformat(self.created_at),
            "avatar_url": self.avatar_url,
        }


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


class MessageService:
    """Chat message operations bound to one database session."""

    def __init__(
        self,
        message_repo: MessageRepository,
        user_repo: UserRepository,
        session: AsyncSession,
        admin_username: str,
    ) -> None:
        self._message_repo = message_repo
        self._user_repo = user_repo
        self._session = session
        self._admin_username = admin_username

    async def recent(self, limit: int) -> list[ChatMessageResponse]:
        """Latest messages, oldest first."""
        messages = await self._message_repo.find_recent(limit)
        return [ChatMessageResponse.model_validate(m) for m in messages]

    async def post(self, username: str, content: str) -> StoredMessage:
        """Persist a message for ``username``."""
        user = await self._user_repo.find_by_username(username)
        if user is None:
            raise UserNotFoundError
        message: Message = await self._message_repo.create(
            user_id=user.id, username=user.username, content=content
        )
        await self._session.commit()
        return StoredMessage(
            id=message.id,
            user_id=message.user_id,
            username=message.username,
            content=message.content,
            created_at=message.created_at or datetime.now(UTC),
            avatar_url=user.avatar_url,
        )

    async def delete(self, actor: str, message_id: int) -> None:
        """Delete a message written by ``actor``, or any message for the admin."""
        message = await self._message_repo.find_by_id(message_id)
        if message is None:
            raise MessageNotFoundError
        if actor != self._admin_username and message.username != actor:
            raise AuthorizationError(message="Cannot delete another user's message")
        await self._message_repo.delete_by_id(message_id)
        await self._session.commit()

    async def clear(self, actor: str) -> int:
        """Delete every message. Admin only."""
        if actor != self._admin_username:
            raise AuthorizationError(message="Admin only")
        removed = await self._message_repo.delete_all()
        await self._session.commit()
        return removed
