"""
TradeRecord model - historical record of executed trades.

Trade records are append-only (never modified or deleted). Each one records
a single buy or sell executed against the player's cash balance at the price
the resolver produced at the time.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from cryptogame.database import Base


class TradeSide(enum.Enum):
    """Buy or sell."""

    BUY = "buy"
    SELL = "sell"


class TradeRecord(Base):
    """An executed trade."""

    __tablename__ = "trade_records"

    # Primary key: unique trade identifier
    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False
    )

    # What was traded, with the display names known at execution time
    asset_id: Mapped[str] = mapped_column(String, nullable=False)
    asset_name: Mapped[str] = mapped_column(String, nullable=False)
    asset_symbol: Mapped[str] = mapped_column(String, nullable=False)

    side: Mapped[TradeSide] = mapped_column(Enum(TradeSide), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)

    # quantity * price
    total: Mapped[Decimal] = mapped_column(Numeric(28, 10), nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    # Database constraints
    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_trade_quantity_positive"),
        CheckConstraint("price >= 0", name="check_trade_price_non_negative"),
        Index("ix_trade_records_user_timestamp", "user_id", "timestamp"),
        Index("ix_trade_records_asset", "asset_id"),
    )

    def __repr__(self) -> str:
        return (
            f"TradeRecord(id={self.id!r}, {self.side.value} {self.quantity} "
            f"{self.asset_id} @ {self.price}, user={self.user_id!r})"
        )
