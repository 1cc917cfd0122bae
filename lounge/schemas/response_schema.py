"""Unified API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Machine-readable code plus a user-facing message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Envelope produced by the exception handlers."""

    success: bool = False
    error: ErrorDetail


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope with status, message, and data."""

    status: int = 200
    message: str = "Success"
    data: T | None = None


def success_response(data: T, status: int = 200, message: str = "Success") -> dict:
    """Build a success response dict for returning from endpoints."""
    return {"status": status, "message": message, "data": data}
