"""Portfolio API endpoints - requires authentication."""

from decimal import Decimal

from fastapi import APIRouter, Depends

from cryptogame.auth import get_current_user
from cryptogame.config import INITIAL_BALANCE
from cryptogame.dependencies import get_resolver
from cryptogame.models import User
from cryptogame.pricing import PriceResolver
from cryptogame.schemas.portfolio import PortfolioResponse, PositionWithPnLResponse
from cryptogame.services import portfolio as portfolio_service
from cryptogame.services.leaderboard import compute_profit_percent

router = APIRouter()

CENTS = Decimal("0.01")


@router.get(
    "/portfolio",
    response_model=PortfolioResponse,
    summary="Get my portfolio",
)
async def get_portfolio(
    user: User = Depends(get_current_user),
    resolver: PriceResolver = Depends(get_resolver),
) -> PortfolioResponse:
    """Get your positions valued at current prices.

    **What the numbers mean for each position:**
    - **quantity**: How much of the asset you hold
    - **average_cost**: What you paid per unit on average
    - **current_price**: What one unit is worth now
    - **current_value**: What your position is worth now
    - **profit_loss**: Your profit or loss (positive = profit!)

    An asset with no price available right now is valued at zero.

    **profit_percent** and **total_value** here are computed at current
    prices. The account and leaderboard endpoints show the figures stored by
    the last leaderboard rebuild, so the two can differ until the next one.
    """
    summary = await portfolio_service.get_portfolio(user, resolver)

    return PortfolioResponse(
        balance=summary.cash_balance,
        portfolio_value=summary.positions_value,
        total_value=summary.total_value,
        profit_percent=compute_profit_percent(summary.total_value, INITIAL_BALANCE),
        rank=user.rank,
        positions=[
            PositionWithPnLResponse(
                asset_id=p.asset_id,
                name=p.name,
                symbol=p.symbol,
                quantity=p.quantity,
                average_cost=p.average_cost.quantize(CENTS),
                current_price=p.current_price,
                price_source=p.price_source,
                current_value=p.current_value,
                profit_loss=p.unrealized_pnl,
                profit_loss_percent=p.unrealized_pnl_percent,
            )
            for p in summary.positions
        ],
    )
