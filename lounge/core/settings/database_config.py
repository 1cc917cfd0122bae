"""Database connection configuration."""

import ssl
from typing import Any

from pydantic import BaseModel, SecretStr
from sqlalchemy.engine import URL

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    host: str
    user: str
    password: SecretStr
    name: str
    port: int
    url: SecretStr | None = None

    @property
    def async_url(self) -> str:
        """Async DB URL; an explicit URL wins over the DB_* parts."""
        if self.url is not None and self.url.get_secret_value():
            return self.url.get_secret_value()
        return URL.create(
            drivername="mysql+aiomysql",
            username=self.user,
            password=self.password.get_secret_value() or None,
            host=self.host,
            port=self.port,
            database=self.name,
            query={"charset": "utf8mb4"},
        ).render_as_string(hide_password=False)

    @property
    def is_remote(self) -> bool:
        """Whether the MySQL host is outside this machine."""
        return self.host not in LOCAL_HOSTS

    @property
    def connect_args(self) -> dict[str, Any]:
        """Driver arguments: TLS without certificate checks for remote hosts."""
        if self.url is not None and self.url.get_secret_value():
            return {}
        args: dict[str, Any] = {"connect_timeout": 60}
        if self.is_remote:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            args["ssl"] = context
        return args
