"""Application exception classes and handlers."""

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


# --- Authentication (401) ---


class AuthenticationError(AppException):
    """Base authentication error."""

    def __init__(self, message: str = "Not logged in.") -> None:
        super().__init__(message=message, code="AUTHENTICATION_ERROR", status_code=401)


class InvalidCredentialsError(AppException):
    """Unknown username or wrong password; deliberately indistinguishable."""

    def __init__(self) -> None:
        super().__init__(
            message="Username or password is incorrect",
            code="INVALID_CREDENTIALS",
            status_code=401,
        )


class InvalidSessionError(AppException):
    """Session cookie is missing, forged, expired or revoked."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid session",
            code="INVALID_SESSION",
            status_code=401,
        )


# --- Authorization (403) ---


class AuthorizationError(AppException):
    """Insufficient permissions."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message=message, code="AUTHORIZATION_ERROR", status_code=403)


# --- Conflict (409) ---


class UsernameUnavailableError(AppException):
    """Username is taken, possibly by a case variant. Never names it."""

    def __init__(self) -> None:
        super().__init__(
            message="Username is not available",
            code="USERNAME_UNAVAILABLE",
            status_code=409,
        )


# --- Not Found (404) ---


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self) -> None:
        super().__init__(
            message="User not found",
            code="USER_NOT_FOUND",
            status_code=404,
        )


class MessageNotFoundError(AppException):
    """Chat message not found."""

    def __init__(self) -> None:
        super().__init__(
            message="Message not found",
            code="MESSAGE_NOT_FOUND",
            status_code=404,
        )


# --- Rate Limit (429) ---


class AccountLockedError(AppException):
    """Too many failed login attempts."""

    def __init__(self) -> None:
        super().__init__(
            message="Too many failed login attempts. Please try again later.",
            code="ACCOUNT_LOCKED",
            status_code=429,
        )


# --- Server (500) ---


class DatabaseError(AppException):
    """Generic, user-facing database failure."""

    def __init__(self) -> None:
        super().__init__(
            message="Database error.",
            code="DATABASE_ERROR",
            status_code=500,
        )


# --- Exception Handlers ---


def _error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Central exception handler for AppException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first validation failure without echoing submitted values."""
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_ERROR", message),
    )


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Log the failure and degrade to a generic message."""
    logger.exception("Database error", path=request.url.path)
    error = DatabaseError()
    return JSONResponse(
        status_code=error.status_code,
        content=_error_body(error.code, error.message),
    )
