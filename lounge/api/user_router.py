"""Current-user and user directory API."""

from typing import Annotated

from fastapi import APIRouter, Depends

from lounge.dependencies import get_user_service
from lounge.schemas.response_schema import ApiResponse, success_response
from lounge.schemas.user_schema import AvatarUpdateRequest, UserProfile
from lounge.services.user_service import UserService

router = APIRouter(prefix="/api", tags=["users"])

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("/userinfo", response_model=ApiResponse[UserProfile])
async def userinfo(service: UserServiceDep) -> dict:
    """Profile of the signed-in user."""
    return success_response(await service.get_profile())


@router.get("/users", response_model=ApiResponse[list[UserProfile]])
async def list_users(service: UserServiceDep) -> dict:
    """All registered users."""
    return success_response(await service.list_users())


@router.post("/avatar", response_model=ApiResponse[UserProfile])
async def update_avatar(body: AvatarUpdateRequest, service: UserServiceDep) -> dict:
    """Change the signed-in user's avatar."""
    result = await service.update_avatar(body)
    return success_response(result, message="Avatar updated")
