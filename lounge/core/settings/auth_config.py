"""Session authentication configuration."""

from pydantic import BaseModel, SecretStr


class AuthConfig(BaseModel, frozen=True):
    """Session cookie and login throttling settings."""

    session_secret: SecretStr
    session_algorithm: str
    session_ttl_hours: int
    session_cookie_name: str
    login_rate_limit: str
    signup_rate_limit: str

    @property
    def session_ttl_seconds(self) -> int:
        """Session lifetime in seconds."""
        return self.session_ttl_hours * 3600
