"""Pydantic schemas for leaderboard endpoints."""

from decimal import Decimal

from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    """One player on the leaderboard."""

    user_id: str
    username: str
    balance: Decimal = Field(..., description="Cash balance")
    portfolio_value: Decimal = Field(..., description="total_value - balance")
    total_value: Decimal
    assets_count: int = Field(..., description="Number of distinct assets held")
    rank: int | None
    profit_percent: Decimal


class LeaderboardResponse(BaseModel):
    """A page of the leaderboard, best first."""

    count: int
    total: int
    total_pages: int
    current_page: int
    users: list[LeaderboardEntry] = Field(default_factory=list)
