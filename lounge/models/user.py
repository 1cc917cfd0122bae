"""User database model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from lounge.core.database import Base


class User(Base):
    """Registered account. ``password`` holds a bcrypt hash, never plaintext."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="online")
