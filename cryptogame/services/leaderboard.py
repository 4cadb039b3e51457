"""Valuation and ranking engine.

A rebuild values every player at current prices and rewrites the derived
leaderboard fields (total_value, profit_percent, rank) on each of them.

- Every distinct asset held by anyone is resolved exactly once per rebuild,
  with a bounded number of resolutions in flight.
- Ranks are dense and 1-based: highest total value first, ties broken by
  user id ascending.
- Each player's standing is saved in its own transaction. One failed save
  is logged and leaves that player's previous standing in place; it never
  aborts the others.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cryptogame import telemetry
from cryptogame.config import INITIAL_BALANCE, VALUATION_CONCURRENCY
from cryptogame.models import User
from cryptogame.pricing import AssetQuote, PriceResolver

logger = logging.getLogger(__name__)


@dataclass
class UserStanding:
    """Valuation of one player within a rebuild."""

    user_id: str
    username: str
    cash_balance: Decimal
    total_value: Decimal
    profit_percent: Decimal
    asset_count: int
    rank: int = 0

    @property
    def portfolio_value(self) -> Decimal:
        return self.total_value - self.cash_balance


@dataclass
class LeaderboardPage:
    """One page of the persisted leaderboard."""

    users: list[User]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class StandingStore(Protocol):
    """Where players are read from and standings written to."""

    async def load_users(self) -> list[User]:
        ...

    async def save_standing(self, standing: UserStanding) -> None:
        ...


class SqlStandingStore:
    """StandingStore backed by the database, one transaction per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load_users(self) -> list[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).order_by(User.id))
            return list(result.scalars().all())

    async def save_standing(self, standing: UserStanding) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User)
                .where(User.id == standing.user_id)
                .values(
                    total_value=standing.total_value,
                    profit_percent=standing.profit_percent,
                    rank=standing.rank,
                )
            )
            await session.commit()


def compute_profit_percent(total_value: Decimal, initial_balance: Decimal) -> Decimal:
    """Percentage gained or lost against the starting balance."""
    if initial_balance == 0:
        return Decimal("0")
    return (total_value - initial_balance) / initial_balance * 100


def value_user(user: User, quotes: dict[str, AssetQuote]) -> Decimal:
    """Cash plus every position at its resolved price."""
    total = user.cash_balance
    for position in user.positions:
        total += position.quantity * quotes[position.asset_id].price
    return total


def assign_ranks(standings: Iterable[UserStanding]) -> list[UserStanding]:
    """Sort standings best first and number them from 1."""
    ordered = sorted(standings, key=lambda s: (-s.total_value, s.user_id))
    for rank, standing in enumerate(ordered, start=1):
        standing.rank = rank
    return ordered


async def recompute_all(
    store: StandingStore,
    resolver: PriceResolver,
    *,
    initial_balance: Decimal = INITIAL_BALANCE,
    concurrency: int = VALUATION_CONCURRENCY,
) -> list[UserStanding]:
    """Revalue and rerank every player.

    Args:
        store: Source of players and sink for standings
        resolver: Price resolver
        initial_balance: Baseline for profit percentages
        concurrency: Maximum simultaneous price resolutions

    Returns:
        All standings, best first
    """
    users = await store.load_users()
    asset_ids = {p.asset_id for user in users for p in user.positions}
    quotes = await resolver.resolve_many(asset_ids, concurrency=concurrency)

    standings = []
    for user in users:
        total_value = value_user(user, quotes)
        standings.append(
            UserStanding(
                user_id=user.id,
                username=user.username,
                cash_balance=user.cash_balance,
                total_value=total_value,
                profit_percent=compute_profit_percent(total_value, initial_balance),
                asset_count=len(user.positions),
            )
        )
    standings = assign_ranks(standings)

    failures = 0
    for standing in standings:
        try:
            await store.save_standing(standing)
        except SQLAlchemyError:
            failures += 1
            logger.exception(
                "Failed to save standing for user %s", standing.user_id,
                extra={"user_id": standing.user_id, "rank": standing.rank},
            )
            continue
        telemetry.record_standing(standing.user_id, standing.total_value, standing.rank)

    telemetry.record_leaderboard_rebuild(len(users), len(asset_ids), failures)
    logger.info(
        "Leaderboard rebuilt: %d users, %d assets, %d failed saves",
        len(users), len(asset_ids), failures,
    )
    return standings


async def get_leaderboard_page(
    session: AsyncSession, page: int = 1, limit: int = 10
) -> LeaderboardPage:
    """Read a page of the persisted leaderboard, best first.

    Players never ranked yet sort last.
    """
    total = await session.scalar(select(func.count()).select_from(User))

    result = await session.execute(
        select(User)
        .order_by(User.total_value.desc().nulls_last(), User.id)
        .offset((page - 1) * limit)
        .limit(limit)
        # Standings were written by other sessions
        .execution_options(populate_existing=True)
    )

    return LeaderboardPage(
        users=list(result.scalars().all()),
        total=total or 0,
        page=page,
        limit=limit,
    )
