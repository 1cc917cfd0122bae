"""HTTP / Socket.IO listener configuration."""

from pydantic import BaseModel, Field


class ServerConfig(BaseModel, frozen=True):
    """Where uvicorn binds the combined ASGI app."""

    host: str
    port: int = Field(ge=1, le=65535)

    @property
    def bind(self) -> str:
        return f"{self.host}:{self.port}"
