"""Authentication for player endpoints."""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cryptogame.database import get_session
from cryptogame.models import User
from cryptogame.services.admin import hash_api_key

# API key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_current_user(
    api_key: str | None = Security(api_key_header),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Validate API key and return the associated player.

    Args:
        api_key: API key from X-API-Key header
        session: Database session

    Returns:
        The authenticated player

    Raises:
        HTTPException: If API key is missing or invalid
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    # Hash the provided key and look up the player
    key_hash = hash_api_key(api_key)
    result = await session.execute(
        select(User).where(User.api_key_hash == key_hash)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return user
