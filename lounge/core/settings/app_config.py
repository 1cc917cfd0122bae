"""Application environment configuration."""

from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel, frozen=True):
    """Application environment settings."""

    name: str
    env: Literal["development", "staging", "production"]
    debug: bool
    cors_origins: str

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Allowed CORS origins; wildcard in development when none are set."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        if not origins and self.is_development:
            return ["*"]
        return origins
