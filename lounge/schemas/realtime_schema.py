"""Socket.IO event payload schemas.

Client payloads use the camelCase keys the web client sends (``peerId``,
``messageId``); models accept either spelling.
"""

from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints

from lounge.schemas.user_schema import UserStatus

ALLOWED_REACTIONS = frozenset({"👍", "👎", "😂", "❤️", "😮", "😢", "😡", "🔥"})

# Ids handed out for messages relayed without being stored
LOCAL_MESSAGE_ID_PATTERN = r"^local-[0-9a-f]{32}$"

LocalMessageId = Annotated[str, StringConstraints(pattern=LOCAL_MESSAGE_ID_PATTERN)]


class _ClientPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChatMessageIn(_ClientPayload):
    content: str = Field(
        min_length=1, validation_alias=AliasChoices("content", "message")
    )


class StatusChangeIn(_ClientPayload):
    status: UserStatus


class SpeakingIn(_ClientPayload):
    speaking: bool


class ReactionIn(_ClientPayload):
    message_id: int | LocalMessageId = Field(alias="messageId")
    emoji: str = Field(min_length=1, max_length=16)


class DeleteMessageIn(_ClientPayload):
    message_id: int = Field(alias="messageId")


class AdminActionIn(_ClientPayload):
    action: Literal["clear_chat"]


class PeerIn(_ClientPayload):
    """Any event that announces the sender's PeerJS id."""

    peer_id: str = Field(alias="peerId", min_length=1, max_length=128)
