"""Pydantic schemas for admin endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request schema for creating a player."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=32,
        pattern=r"^[A-Za-z0-9_.-]+$",
        description="Unique display name",
    )
    initial_cash: Decimal | None = Field(
        default=None,
        ge=0,
        description="Starting cash balance (defaults to the game's initial balance)",
    )


class UserResponse(BaseModel):
    """Response schema for a newly created player (includes API key)."""

    user_id: str
    username: str
    cash_balance: Decimal
    api_key: str
    created_at: datetime


class UserListItem(BaseModel):
    """Response schema for a player in list view."""

    user_id: str
    username: str
    cash_balance: Decimal
    rank: int | None
    created_at: datetime
