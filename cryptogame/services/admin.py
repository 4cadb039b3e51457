"""Admin service - user provisioning."""

import hashlib
import secrets
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cryptogame.config import INITIAL_BALANCE
from cryptogame.models import User
from cryptogame.schemas.admin import UserCreate


def generate_user_id() -> str:
    """Generate a unique user ID."""
    return str(uuid.uuid4())


def generate_api_key() -> str:
    """Generate a secure API key for a player.

    Returns:
        A URL-safe random string (sk_ prefix + 43 characters)
    """
    return f"sk_{secrets.token_urlsafe(32)}"


def hash_api_key(api_key: str) -> str:
    """Hash an API key for secure storage.

    Args:
        api_key: The plain API key

    Returns:
        SHA-256 hash of the API key (64 hex characters)
    """
    return hashlib.sha256(api_key.encode()).hexdigest()


async def create_user(session: AsyncSession, data: UserCreate) -> tuple[User, str]:
    """Create a new player.

    Args:
        session: Database session
        data: User creation data; initial_cash defaults to INITIAL_BALANCE

    Returns:
        Tuple of (created user, API key)

    Raises:
        IntegrityError: If the username is already taken
    """
    api_key = generate_api_key()
    initial_cash = data.initial_cash if data.initial_cash is not None else INITIAL_BALANCE

    user = User(
        id=generate_user_id(),
        username=data.username,
        api_key_hash=hash_api_key(api_key),
        cash_balance=initial_cash,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return user, api_key


async def list_users(session: AsyncSession) -> list[User]:
    """Get all users, oldest first."""
    result = await session.execute(select(User).order_by(User.created_at, User.id))
    return list(result.scalars().all())
