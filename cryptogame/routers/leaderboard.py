"""Leaderboard API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cryptogame.database import get_session, get_session_factory
from cryptogame.dependencies import get_resolver
from cryptogame.pricing import PriceResolver
from cryptogame.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse
from cryptogame.services import leaderboard as leaderboard_service

router = APIRouter()


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Get the leaderboard",
)
async def get_leaderboard(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=10, ge=1, le=100, description="Players per page"),
    session: AsyncSession = Depends(get_session),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    resolver: PriceResolver = Depends(get_resolver),
) -> LeaderboardResponse:
    """Revalue every player at current prices and return a page of the ranking.

    Players are ordered by total value (cash + positions), best first.
    """
    await leaderboard_service.recompute_all(
        leaderboard_service.SqlStandingStore(session_factory), resolver
    )
    result = await leaderboard_service.get_leaderboard_page(session, page=page, limit=limit)

    entries = []
    for user in result.users:
        total_value = user.total_value if user.total_value is not None else user.cash_balance
        entries.append(
            LeaderboardEntry(
                user_id=user.id,
                username=user.username,
                balance=user.cash_balance,
                portfolio_value=total_value - user.cash_balance,
                total_value=total_value,
                assets_count=len(user.positions),
                rank=user.rank,
                profit_percent=user.profit_percent,
            )
        )

    return LeaderboardResponse(
        count=len(entries),
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        users=entries,
    )
