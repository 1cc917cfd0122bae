"""Password hashing utilities using bcrypt."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import bcrypt

_executor = ThreadPoolExecutor(max_workers=4)

BCRYPT_ROUNDS = 10

DUMMY_HASH = bcrypt.hashpw(b"dummy", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


async def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        _executor,
        lambda: bcrypt.hashpw(
            password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        ).decode(),
    )


async def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            _executor,
            lambda: bcrypt.checkpw(plain.encode(), hashed.encode()),
        )
    except ValueError:
        # Malformed stored hash
        return False
