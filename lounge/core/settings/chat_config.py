"""Chat behaviour configuration."""

from pydantic import BaseModel


class ChatConfig(BaseModel, frozen=True):
    """Chat history and moderation settings."""

    admin_username: str
    message_history_limit: int
    max_message_length: int
