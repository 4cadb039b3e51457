"""Pydantic schemas for market data endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class MarketTicker(BaseModel):
    """One asset in the market listing."""

    id: str = Field(..., description="Provider id")
    name: str
    symbol: str
    price: Decimal
    market_cap: Decimal
    volume_24h: Decimal
    percent_change_24h: Decimal


class MarketListResponse(BaseModel):
    """A page of the market listing."""

    current_page: int
    limit: int
    cryptos: list[MarketTicker] = Field(default_factory=list)


class CryptoDetailResponse(BaseModel):
    """Resolved price of one asset, with provider details when available."""

    asset_id: str
    name: str
    symbol: str
    price: Decimal
    price_source: str = Field(..., description="Which pricing tier produced the price")
    is_degraded: bool = Field(
        ..., description="True when the price is not a fresh upstream answer"
    )
    market_cap: Decimal | None = None
    volume_24h: Decimal | None = None
    percent_change_24h: Decimal | None = None
    percent_change_7d: Decimal | None = None
    circulating_supply: Decimal | None = None
    total_supply: Decimal | None = None


class PricePoint(BaseModel):
    """A single point of simulated history."""

    timestamp: datetime
    price: float


class PriceHistoryResponse(BaseModel):
    """Simulated hourly price history."""

    asset_id: str
    days: int
    prices: list[PricePoint] = Field(default_factory=list)
