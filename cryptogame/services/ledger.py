"""Cost-basis ledger.

Applies buys and sells to a user's cash balance and positions using the
weighted-average cost method:

- A buy adds quantity and moves the average cost toward the buy price,
  weighted by quantity.
- A sell removes quantity and returns proceeds to cash. It never changes
  the average cost of what remains.
- A position whose quantity reaches exactly zero is removed.

Quantities are limited to the stored scale, so a remainder left by a sell
is either zero or large enough to be stored.

Every check runs before the first mutation, so a rejected operation leaves
the user untouched. The caller commits the user, its positions and the
returned TradeRecord in one transaction.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal

from cryptogame.errors import (
    InsufficientFunds,
    InsufficientQuantity,
    InvalidQuantity,
    InvalidQuote,
    PositionNotFound,
)
from cryptogame.models import QUANTITY_SCALE, Position, TradeRecord, TradeSide, User


@dataclass
class LedgerEntry:
    """Outcome of a ledger operation.

    ``position`` is None when a sell closed the position.
    """

    position: Position | None
    trade: TradeRecord


def generate_trade_id() -> str:
    """Generate a unique trade ID."""
    return str(uuid.uuid4())


def _validate(quantity: Decimal, price: Decimal) -> None:
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantity(f"Quantity must be positive, got {quantity}")
    if quantity.normalize().as_tuple().exponent < -QUANTITY_SCALE:
        raise InvalidQuantity(
            f"Quantity {quantity} has more than {QUANTITY_SCALE} decimal places"
        )
    if price <= 0:
        raise InvalidQuote(
            "Cannot process transaction with invalid price. Please try again later."
        )


def _record(
    user: User,
    asset_id: str,
    side: TradeSide,
    quantity: Decimal,
    price: Decimal,
    name: str | None,
    symbol: str | None,
) -> TradeRecord:
    return TradeRecord(
        id=generate_trade_id(),
        user_id=user.id,
        asset_id=asset_id,
        asset_name=name or asset_id,
        asset_symbol=(symbol or asset_id[:3]).upper(),
        side=side,
        quantity=quantity,
        price=price,
        total=quantity * price,
        timestamp=datetime.now(UTC).replace(tzinfo=None),
    )


def apply_buy(
    user: User,
    asset_id: str,
    quantity: Decimal,
    price: Decimal,
    *,
    name: str | None = None,
    symbol: str | None = None,
) -> LedgerEntry:
    """Buy ``quantity`` of an asset at ``price``.

    Raises:
        InvalidQuantity: quantity <= 0, or finer than the stored scale
        InvalidQuote: price <= 0
        InsufficientFunds: cost exceeds the cash balance
    """
    _validate(quantity, price)

    cost = quantity * price
    if cost > user.cash_balance:
        raise InsufficientFunds(
            f"Insufficient funds: have {user.cash_balance:.2f} available, need {cost:.2f}"
        )

    position = user.get_position(asset_id)
    if position is not None:
        new_quantity = position.quantity + quantity
        position.average_cost = (position.quantity * position.average_cost + cost) / new_quantity
        position.quantity = new_quantity
    else:
        position = Position(
            user_id=user.id,
            asset_id=asset_id,
            quantity=quantity,
            average_cost=price,
        )
        user.positions.append(position)

    user.cash_balance -= cost

    return LedgerEntry(
        position=position,
        trade=_record(user, asset_id, TradeSide.BUY, quantity, price, name, symbol),
    )


def apply_sell(
    user: User,
    asset_id: str,
    quantity: Decimal,
    price: Decimal,
    *,
    name: str | None = None,
    symbol: str | None = None,
) -> LedgerEntry:
    """Sell ``quantity`` of an asset at ``price``.

    Raises:
        InvalidQuantity: quantity <= 0, or finer than the stored scale
        InvalidQuote: price <= 0
        PositionNotFound: nothing of the asset is held
        InsufficientQuantity: quantity exceeds what is held
    """
    _validate(quantity, price)

    position = user.get_position(asset_id)
    if position is None:
        raise PositionNotFound("You do not own this cryptocurrency")
    if quantity > position.quantity:
        raise InsufficientQuantity(
            f"Insufficient cryptocurrency amount: have {position.quantity}, need {quantity}"
        )

    remaining = position.quantity - quantity
    if remaining == 0:
        user.positions.remove(position)
        position = None
    else:
        position.quantity = remaining

    user.cash_balance += quantity * price

    return LedgerEntry(
        position=position,
        trade=_record(user, asset_id, TradeSide.SELL, quantity, price, name, symbol),
    )
