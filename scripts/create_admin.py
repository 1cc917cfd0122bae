"""Create the admin account in the database.

Usage:
    python -m scripts.create_admin --password Admin1234!
"""

import argparse
import asyncio

from lounge.core.config import settings
from lounge.core.database import Base, async_session_factory, engine
from lounge.core.security import hash_password
from lounge.models.message import Message  # noqa: F401
from lounge.repositories.user_repo import UserRepository


async def create_admin(password: str, username: str) -> None:
    """Create the admin user if the name is not already taken."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        repo = UserRepository(session)
        existing = await repo.find_by_username(username)
        if existing:
            print(f"User '{username}' already exists (id={existing.id}).")
            return

        hashed = await hash_password(password)
        user = await repo.create(username=username, hashed_password=hashed)
        await session.commit()
        print(f"Admin user created: {username} (id={user.id})")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the admin user")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument(
        "--username",
        default=settings.chat.admin_username,
        help="Admin username (must match ADMIN_USERNAME)",
    )
    args = parser.parse_args()

    asyncio.run(create_admin(args.password, args.username))


if __name__ == "__main__":
    main()
