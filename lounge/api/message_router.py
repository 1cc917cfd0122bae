"""Chat history API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from lounge.core.config import settings
from lounge.dependencies import get_current_user, get_message_service
from lounge.schemas.message_schema import ChatMessageResponse
from lounge.schemas.response_schema import ApiResponse, success_response
from lounge.services.message_service import MessageService

router = APIRouter(
    prefix="/api/messages",
    tags=["messages"],
    dependencies=[Depends(get_current_user)],
)

MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]


@router.get("", response_model=ApiResponse[list[ChatMessageResponse]])
async def list_messages(
    service: MessageServiceDep,
    limit: int = Query(default=settings.chat.message_history_limit, ge=1, le=200),
) -> dict:
    """Most recent messages, oldest first."""
    return success_response(await service.recent(limit))
