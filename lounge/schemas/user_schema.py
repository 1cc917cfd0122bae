"""User profile schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

UserStatus = Literal["online", "away", "busy", "invisible"]

MAX_AVATAR_URL_LENGTH = 512


class UserProfile(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    username: str
    avatar_url: str | None = None
    status: str


class AvatarUpdateRequest(BaseModel):
    """New avatar location."""

    avatar_url: HttpUrl = Field(description="http(s) URL of the avatar image")

    @field_validator("avatar_url")
    @classmethod
    def limit_length(cls, v: HttpUrl) -> HttpUrl:
        if len(str(v)) > MAX_AVATAR_URL_LENGTH:
            raise ValueError(
                f"Avatar URL must be at most {MAX_AVATAR_URL_LENGTH} characters"
            )
        return v
