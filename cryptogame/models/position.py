"""
Position model - tracks crypto ownership.

Represents how much of each asset a user holds and at what average cost.
Uses a composite primary key (user_id, asset_id).
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptogame.database import Base

# Decimal places kept for quantities; finer amounts cannot be stored
QUANTITY_SCALE = 10


class Position(Base):
    """Holding of a single crypto asset by a user."""

    __tablename__ = "positions"

    # Composite primary key: user + asset
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), primary_key=True
    )
    asset_id: Mapped[str] = mapped_column(String, primary_key=True)

    # Amount held (must be positive)
    # When quantity reaches 0, the row is deleted
    quantity: Mapped[Decimal] = mapped_column(Numeric(28, QUANTITY_SCALE), nullable=False)

    # Weighted average purchase price; only buys move it
    average_cost: Mapped[Decimal] = mapped_column(
        Numeric(28, 10), nullable=False, default=Decimal("0")
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="positions")

    # Database constraints
    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_quantity_positive"),
        CheckConstraint("average_cost >= 0", name="check_average_cost_non_negative"),
    )

    @property
    def cost_basis(self) -> Decimal:
        """Total amount paid for the quantity currently held."""
        return self.quantity * self.average_cost

    def __repr__(self) -> str:
        return (
            f"Position(user={self.user_id!r}, asset={self.asset_id!r}, "
            f"quantity={self.quantity}, average_cost={self.average_cost})"
        )


# Import at end to avoid circular imports
from cryptogame.models.user import User
