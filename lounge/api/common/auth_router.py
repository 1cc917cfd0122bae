"""Login, signup and logout endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import FileResponse, RedirectResponse
from slowapi.util import get_remote_address

from lounge.api.common.page_router import page
from lounge.core.config import settings
from lounge.core.rate_limit import limiter
from lounge.dependencies import get_auth_service
from lounge.schemas.auth_schema import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SignupRequest,
)
from lounge.schemas.response_schema import ApiResponse, success_response
from lounge.services.auth_service import AuthService

router = APIRouter(tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.get("/login", include_in_schema=False)
async def login_page() -> FileResponse:
    """Login form."""
    return page("login.html")


@router.get("/signup", include_in_schema=False)
async def signup_page() -> FileResponse:
    """Signup form."""
    return page("signup.html")


@router.post(
    "/signup",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth.signup_rate_limit)
async def signup(
    request: Request,
    body: SignupRequest,
    auth_service: AuthServiceDep,
) -> dict:
    """Create an account."""
    result = await auth_service.signup(body)
    return success_response(result, status=201, message=result.message)


@router.post("/login", response_model=ApiResponse[LoginResponse])
@limiter.limit(settings.auth.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: AuthServiceDep,
) -> dict:
    """Authenticate and start a cookie session."""
    result, cookie = await auth_service.login(body, client=get_remote_address(request))
    response.set_cookie(
        key=settings.auth.session_cookie_name,
        value=cookie,
        max_age=settings.auth.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.app.is_production,
    )
    return success_response(result)


@router.get("/logout", include_in_schema=False)
async def logout(request: Request, auth_service: AuthServiceDep) -> RedirectResponse:
    """End the session and return to the landing page."""
    await auth_service.logout(getattr(request.state, "session_cookie", None))
    redirect = RedirectResponse("/", status_code=status.HTTP_302_FOUND)
    redirect.delete_cookie(settings.auth.session_cookie_name)
    return redirect
