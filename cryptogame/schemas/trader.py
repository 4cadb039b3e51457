"""Pydantic schemas for trader endpoints."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from cryptogame.models import QUANTITY_SCALE


class TradeSide(str, Enum):
    """Buy or sell."""

    BUY = "buy"
    SELL = "sell"


# ============================================================================
# Trade schemas
# ============================================================================


class TradeCreate(BaseModel):
    """Request schema for a buy or sell."""

    asset_id: str = Field(
        ..., min_length=1, max_length=64, description="Asset identifier, e.g. 'bitcoin'"
    )
    quantity: Decimal = Field(
        ...,
        gt=0,
        decimal_places=QUANTITY_SCALE,
        description="Amount of the asset to trade, at most 10 decimal places",
    )


class TransactionResponse(BaseModel):
    """Response schema for an executed trade."""

    id: str
    asset_id: str
    asset_name: str
    asset_symbol: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    total: Decimal
    timestamp: datetime


class PositionResponse(BaseModel):
    """Response schema for a single position."""

    asset_id: str
    quantity: Decimal
    average_cost: Decimal

    model_config = {"from_attributes": True}


class TradeResponse(BaseModel):
    """Response for a buy or sell: the trade and the account after it."""

    transaction: TransactionResponse
    new_balance: Decimal = Field(..., description="Cash balance after the trade")
    portfolio: list[PositionResponse] = Field(default_factory=list)
    price_source: str = Field(..., description="Which pricing tier produced the price")


class TransactionListResponse(BaseModel):
    """Paginated trade history, newest first."""

    count: int = Field(..., description="Number of trades on this page")
    total: int = Field(..., description="Number of trades overall")
    total_pages: int
    current_page: int
    transactions: list[TransactionResponse] = Field(default_factory=list)


# ============================================================================
# Account schemas
# ============================================================================


class AccountInfoResponse(BaseModel):
    """Response schema for account info (trader view)."""

    user_id: str
    username: str
    cash_balance: Decimal
    total_value: Decimal = Field(
        ..., description="Value at the last leaderboard rebuild (cash if never valued)"
    )
    profit_percent: Decimal
    rank: int | None
    created_at: datetime
