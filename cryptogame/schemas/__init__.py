"""Pydantic schemas for request/response validation."""

from cryptogame.schemas.admin import UserCreate, UserListItem, UserResponse
from cryptogame.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse
from cryptogame.schemas.market import (
    CryptoDetailResponse,
    MarketListResponse,
    MarketTicker,
    PriceHistoryResponse,
    PricePoint,
)
from cryptogame.schemas.portfolio import PortfolioResponse, PositionWithPnLResponse
from cryptogame.schemas.trader import (
    AccountInfoResponse,
    PositionResponse,
    TradeCreate,
    TradeResponse,
    TradeSide,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Admin schemas
    "UserCreate",
    "UserResponse",
    "UserListItem",
    # Trader schemas
    "TradeCreate",
    "TradeSide",
    "TransactionResponse",
    "TransactionListResponse",
    "PositionResponse",
    "TradeResponse",
    "AccountInfoResponse",
    # Portfolio schemas
    "PositionWithPnLResponse",
    "PortfolioResponse",
    # Leaderboard schemas
    "LeaderboardEntry",
    "LeaderboardResponse",
    # Market schemas
    "MarketTicker",
    "MarketListResponse",
    "CryptoDetailResponse",
    "PricePoint",
    "PriceHistoryResponse",
]
