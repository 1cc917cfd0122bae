"""Session store configuration."""

from pydantic import BaseModel
from sqlalchemy.engine import make_url


class RedisConfig(BaseModel, frozen=True):
    """Redis holding login sessions and failed-login counters."""

    url: str

    @property
    def display_url(self) -> str:
        """The URL with any password masked, for logs."""
        return make_url(self.url).render_as_string(hide_password=True)
