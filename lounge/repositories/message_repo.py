"""Message repository for chat history database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lounge.models.message import Message


class MessageRepository:
    """Encapsulates chat message database queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user_id: int, username: str, content: str) -> Message:
        """Insert a message and load its generated id and timestamp."""
        message = Message(user_id=user_id, username=username, content=content)
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def find_by_id(self, message_id: int) -> Message | None:
        """Find a message by its primary key."""
        result = await self._session.execute(
            select(Message).where(Message.id == message_id)
        )
        return result.scalar_one_or_none()

    async def find_recent(self, limit: int) -> list[Message]:
        """Return the latest ``limit`` messages in chronological order."""
        result = await self._session.execute(
            select(Message).order_by(Message.id.desc()).limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def delete_by_id(self, message_id: int) -> None:
        """Hard-delete a single message."""
        await self._session.execute(delete(Message).where(Message.id == message_id))

    async def delete_all(self) -> int:
        """Hard-delete every message, returning the number removed."""
        result = await self._session.execute(delete(Message))
        return result.rowcount or 0
