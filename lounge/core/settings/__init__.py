"""Domain-specific configuration models."""

from lounge.core.settings.app_config import AppConfig
from lounge.core.settings.auth_config import AuthConfig
from lounge.core.settings.chat_config import ChatConfig
from lounge.core.settings.database_config import DatabaseConfig
from lounge.core.settings.redis_config import RedisConfig
from lounge.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "AuthConfig",
    "ChatConfig",
    "DatabaseConfig",
    "RedisConfig",
    "ServerConfig",
]
