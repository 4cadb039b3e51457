"""Pydantic schemas for portfolio endpoints."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PositionWithPnLResponse(BaseModel):
    """Response schema for a position with P/L calculations."""

    asset_id: str = Field(..., description="Asset identifier")
    name: str
    symbol: str
    quantity: Decimal = Field(..., description="Amount held")
    average_cost: Decimal = Field(..., description="Average price paid per unit")
    current_price: Decimal = Field(..., description="Current resolved price")
    price_source: str = Field(..., description="Which pricing tier produced the price")
    current_value: Decimal = Field(..., description="quantity x current_price")
    profit_loss: Decimal = Field(
        ..., description="Unrealized profit/loss (current value - cost basis)"
    )
    profit_loss_percent: Decimal = Field(
        ..., description="Unrealized P/L as percentage (0 when cost basis is 0)"
    )


class PortfolioResponse(BaseModel):
    """Response schema for a player's portfolio."""

    balance: Decimal = Field(..., description="Available cash")
    portfolio_value: Decimal = Field(..., description="Market value of all positions")
    total_value: Decimal = Field(..., description="Cash + positions, at current prices")
    profit_percent: Decimal = Field(
        ...,
        description=(
            "Total value against the starting balance, in percent, at current prices. "
            "May differ from the account figure until the next leaderboard rebuild"
        ),
    )
    rank: int | None = Field(None, description="Rank at the last leaderboard rebuild")
    positions: list[PositionWithPnLResponse] = Field(default_factory=list)
