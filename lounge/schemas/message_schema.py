"""Chat message schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ChatMessageResponse(BaseModel):
    """Persisted chat message as returned by the history API."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    user_id: int
    username: str
    content: str
    created_at: datetime
