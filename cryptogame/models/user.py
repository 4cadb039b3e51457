"""
User model - a player of the trading game.

Users hold virtual cash and crypto positions. Cash can never go negative;
trades that would overdraw the balance are rejected before they reach the
database, and a check constraint backs that up.

total_value, profit_percent and rank are derived fields, rewritten in full
on every leaderboard rebuild.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptogame.database import Base


class User(Base):
    """A player account."""

    __tablename__ = "users"

    # Primary key: opaque user identifier
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Display name, unique across the game
    username: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    # API key hash for authentication (SHA-256 hash of the API key)
    api_key_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # Available cash for trading
    cash_balance: Mapped[Decimal] = mapped_column(
        Numeric(28, 10), nullable=False, default=Decimal("0")
    )

    # Leaderboard fields, unset until the first rebuild
    total_value: Mapped[Decimal | None] = mapped_column(Numeric(28, 10), nullable=True)
    profit_percent: Mapped[Decimal] = mapped_column(
        Numeric(28, 10), nullable=False, default=Decimal("0")
    )
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Optimistic concurrency counter, bumped on every ORM flush of this row
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    # Positions are always needed alongside the cash balance
    positions: Mapped[list["Position"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Position.asset_id",
    )

    __mapper_args__ = {"version_id_col": version}

    # Database constraints
    __table_args__ = (
        CheckConstraint("cash_balance >= 0", name="check_cash_non_negative"),
    )

    def get_position(self, asset_id: str) -> "Position | None":
        """Return the position held in an asset, if any."""
        for position in self.positions:
            if position.asset_id == asset_id:
                return position
        return None

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r}, cash_balance={self.cash_balance})"


# Import at end to avoid circular imports
from cryptogame.models.position import Position
