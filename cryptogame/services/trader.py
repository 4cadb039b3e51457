"""Trader service - trade execution and trade history.

A trade runs in three steps:

1. Resolve a price. This may wait on the upstream provider, so it happens
   before any lock is taken.
2. Under the user's lock, re-read the user and apply the ledger operation.
3. Commit the user, its positions and the trade record together.

The per-user lock serializes trades within one process. The version column
on User catches writers in other processes: a commit against a row that
changed since it was read raises ConcurrentTradeConflict.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cryptogame import telemetry
from cryptogame.errors import ConcurrentTradeConflict, InvalidQuote, TradeError
from cryptogame.models import Position, TradeRecord, TradeSide, User
from cryptogame.pricing import AssetQuote, PriceResolver
from cryptogame.services import ledger

logger = logging.getLogger(__name__)


class UserLocks:
    """One asyncio.Lock per user id, created on first use."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def for_user(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def __len__(self) -> int:
        return len(self._locks)


@dataclass
class TradeResult:
    """An executed trade with the user's state right after it."""

    trade: TradeRecord
    quote: AssetQuote
    cash_balance: Decimal
    positions: list[Position]


@dataclass
class TradePage:
    """One page of a user's trade history."""

    trades: list[TradeRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


async def _load_user(session: AsyncSession, user_id: str) -> User | None:
    # populate_existing discards whatever the identity map held before the lock
    result = await session.execute(
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def execute_trade(
    session: AsyncSession,
    resolver: PriceResolver,
    locks: UserLocks,
    user_id: str,
    side: TradeSide,
    asset_id: str,
    quantity: Decimal,
) -> TradeResult:
    """Buy or sell an asset for a user at the currently resolved price.

    Args:
        session: Database session
        resolver: Price resolver
        locks: Per-user lock registry
        user_id: The trading user
        side: BUY or SELL
        asset_id: Asset to trade
        quantity: Amount to trade, must be positive

    Returns:
        The executed trade and the user's balance and positions after it

    Raises:
        InvalidQuote: No usable price could be resolved
        InsufficientFunds, InsufficientQuantity, PositionNotFound,
        InvalidQuantity: Rejected by the ledger, nothing was changed
        ConcurrentTradeConflict: The user changed underneath this trade
        LookupError: The user does not exist
    """
    quote = await resolver.resolve(asset_id)
    if not quote.is_usable_for_trade:
        telemetry.record_trade_rejected(InvalidQuote.code)
        logger.warning(
            "Rejected %s of %s: no usable price", side.value, asset_id,
            extra={"user_id": user_id, "asset_id": asset_id, "source": quote.source.value},
        )
        raise InvalidQuote(
            "Cannot process transaction with invalid price. Please try again later."
        )

    apply = ledger.apply_buy if side == TradeSide.BUY else ledger.apply_sell

    async with locks.for_user(user_id):
        user = await _load_user(session, user_id)
        if user is None:
            raise LookupError(f"User '{user_id}' not found")

        try:
            entry = apply(
                user,
                asset_id,
                quantity,
                quote.price,
                name=quote.name,
                symbol=quote.symbol,
            )
        except TradeError as e:
            telemetry.record_trade_rejected(e.code)
            logger.info(
                "Rejected %s of %s: %s", side.value, asset_id, e,
                extra={"user_id": user_id, "asset_id": asset_id, "reason": e.code},
            )
            raise

        session.add(entry.trade)
        try:
            await session.commit()
        except StaleDataError as e:
            await session.rollback()
            telemetry.record_trade_rejected(ConcurrentTradeConflict.code)
            logger.warning(
                "Concurrent modification of user %s during %s", user_id, side.value,
                extra={"user_id": user_id, "asset_id": asset_id},
            )
            raise ConcurrentTradeConflict(
                "Your account was modified by another transaction. Please retry."
            ) from e

        telemetry.record_trade(asset_id, side.value, entry.trade.total)
        logger.info(
            "Executed %s of %s %s at %s", side.value, quantity, asset_id, quote.price,
            extra={
                "user_id": user_id,
                "asset_id": asset_id,
                "trade_id": entry.trade.id,
                "source": quote.source.value,
            },
        )

        return TradeResult(
            trade=entry.trade,
            quote=quote,
            cash_balance=user.cash_balance,
            positions=list(user.positions),
        )


async def get_user_trades(
    session: AsyncSession, user_id: str, page: int = 1, limit: int = 10
) -> TradePage:
    """Get a page of a user's trades, newest first."""
    total = await session.scalar(
        select(func.count()).select_from(TradeRecord).where(TradeRecord.user_id == user_id)
    )

    result = await session.execute(
        select(TradeRecord)
        .where(TradeRecord.user_id == user_id)
        .order_by(TradeRecord.timestamp.desc(), TradeRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return TradePage(
        trades=list(result.scalars().all()),
        total=total or 0,
        page=page,
        limit=limit,
    )
