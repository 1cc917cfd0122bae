"""Authentication request/response schemas."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9]+")


class SignupRequest(BaseModel):
    """Account creation request."""

    username: str = Field(
        min_length=3,
        max_length=20,
        description="Username (3-20 chars, letters and digits only)",
    )
    password: str = Field(
        min_length=8,
        max_length=128,
        description="Password (8-128 chars)",
    )

    @field_validator("username")
    @classmethod
    def validate_username_charset(cls, v: str) -> str:
        if not USERNAME_PATTERN.fullmatch(v):
            raise ValueError("Username may only contain letters and digits")
        return v


class LoginRequest(BaseModel):
    """Login request. Usernames are matched exactly, case included."""

    username: str = Field(min_length=1, max_length=20, description="Username")
    password: str = Field(min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    """Successful login result."""

    model_config = ConfigDict(frozen=True)

    username: str
    redirect_url: str = "/dashboard"


class MessageResponse(BaseModel):
    """Simple message response."""

    model_config = ConfigDict(frozen=True)

    message: str


class SessionPayload(BaseModel):
    """Decoded session cookie."""

    model_config = ConfigDict(frozen=True)

    sid: str
    sub: str
    exp: int
