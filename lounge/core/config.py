"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from lounge.core.settings import (
    AppConfig,
    AuthConfig,
    ChatConfig,
    DatabaseConfig,
    RedisConfig,
    ServerConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.auth.session_secret).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = Field(
        default="orkun-lounge",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("app_env", "node_env"),
        description="Application environment (APP_ENV or NODE_ENV)",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed origins",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=4444,
        ge=1,
        le=65535,
        description="Server port",
    )

    # Session auth
    session_secret: SecretStr = Field(
        description="Secret used to sign session cookies",
    )
    session_algorithm: str = Field(
        default="HS256",
        description="Session cookie signing algorithm",
    )
    session_ttl_hours: int = Field(
        default=24,
        ge=1,
        le=720,
        description="Session lifetime in hours",
    )
    session_cookie_name: str = Field(
        default="lounge_session",
        description="Name of the session cookie",
    )
    login_rate_limit: str = Field(
        default="5/minute",
        description="Login endpoint rate limit",
    )
    signup_rate_limit: str = Field(
        default="3/minute",
        description="Signup endpoint rate limit",
    )

    # Database
    db_host: str = Field(default="localhost", description="MySQL host")
    db_user: str = Field(default="root", description="MySQL user")
    db_password: SecretStr = Field(
        default=SecretStr(""),
        description="MySQL password",
    )
    db_name: str = Field(default="login_db", description="MySQL database name")
    db_port: int = Field(default=3306, ge=1, le=65535, description="MySQL port")
    database_url: SecretStr | None = Field(
        default=None,
        description="Full async database URL, overrides the DB_* variables",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # Chat
    admin_username: str = Field(
        default="admin",
        description="Username allowed to run admin actions",
    )
    message_history_limit: int = Field(
        default=50,
        ge=1,
        le=200,
        description="Default number of messages returned by the history API",
    )
    max_message_length: int = Field(
        default=2000,
        ge=1,
        le=10000,
        description="Maximum chat message length",
    )

    # --- Domain properties ---

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            cors_origins=self.cors_origins,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """Session authentication configuration."""
        return AuthConfig(
            session_secret=self.session_secret,
            session_algorithm=self.session_algorithm,
            session_ttl_hours=self.session_ttl_hours,
            session_cookie_name=self.session_cookie_name,
            login_rate_limit=self.login_rate_limit,
            signup_rate_limit=self.signup_rate_limit,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(
            host=self.db_host,
            user=self.db_user,
            password=self.db_password,
            name=self.db_name,
            port=self.db_port,
            url=self.database_url,
        )

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(url=self.redis_url)

    @cached_property
    def chat(self) -> ChatConfig:
        """Chat behaviour configuration."""
        return ChatConfig(
            admin_username=self.admin_username,
            message_history_limit=self.message_history_limit,
            max_message_length=self.max_message_length,
        )

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
