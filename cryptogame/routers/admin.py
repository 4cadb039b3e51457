"""Admin API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cryptogame.database import get_session
from cryptogame.schemas.admin import UserCreate, UserListItem, UserResponse
from cryptogame.services import admin as admin_service

router = APIRouter()


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new player",
)
async def create_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Register a new player.

    Returns the player details including the API key.
    **Store the API key securely - it cannot be retrieved later.**

    - **username**: Unique display name
    - **initial_cash**: Starting cash balance (default: the game's initial balance)
    """
    try:
        user, api_key = await admin_service.create_user(session, data)
        return UserResponse(
            user_id=user.id,
            username=user.username,
            cash_balance=user.cash_balance,
            api_key=api_key,
            created_at=user.created_at,
        )
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with username '{data.username}' already exists",
        )


@router.get(
    "/users",
    response_model=list[UserListItem],
    summary="List all players",
)
async def list_users(
    session: AsyncSession = Depends(get_session),
) -> list[UserListItem]:
    """Get all players."""
    users = await admin_service.list_users(session)
    return [
        UserListItem(
            user_id=u.id,
            username=u.username,
            cash_balance=u.cash_balance,
            rank=u.rank,
            created_at=u.created_at,
        )
        for u in users
    ]
