"""Trader API endpoints - requires authentication."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cryptogame.auth import get_current_user
from cryptogame.database import get_session
from cryptogame.dependencies import get_resolver, get_user_locks
from cryptogame.errors import ConcurrentTradeConflict, TradeError
from cryptogame.models import TradeRecord, TradeSide as ModelTradeSide, User
from cryptogame.pricing import PriceResolver
from cryptogame.schemas.trader import (
    AccountInfoResponse,
    PositionResponse,
    TradeCreate,
    TradeResponse,
    TradeSide,
    TransactionListResponse,
    TransactionResponse,
)
from cryptogame.services import trader as trader_service
from cryptogame.services.trader import UserLocks

router = APIRouter()


def _transaction_response(trade: TradeRecord) -> TransactionResponse:
    return TransactionResponse(
        id=trade.id,
        asset_id=trade.asset_id,
        asset_name=trade.asset_name,
        asset_symbol=trade.asset_symbol,
        side=TradeSide(trade.side.value),
        quantity=trade.quantity,
        price=trade.price,
        total=trade.total,
        timestamp=trade.timestamp,
    )


def _trade_error(e: TradeError) -> HTTPException:
    if isinstance(e, ConcurrentTradeConflict):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=status_code,
        detail={"message": str(e), "code": e.code},
    )


async def _trade(
    side: ModelTradeSide,
    data: TradeCreate,
    user: User,
    session: AsyncSession,
    resolver: PriceResolver,
    locks: UserLocks,
) -> TradeResponse:
    try:
        result = await trader_service.execute_trade(
            session, resolver, locks, user.id, side, data.asset_id, data.quantity
        )
    except TradeError as e:
        raise _trade_error(e)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return TradeResponse(
        transaction=_transaction_response(result.trade),
        new_balance=result.cash_balance,
        portfolio=[PositionResponse.model_validate(p) for p in result.positions],
        price_source=result.quote.source.value,
    )


# ============================================================================
# Account endpoints
# ============================================================================


@router.get(
    "/account",
    response_model=AccountInfoResponse,
    summary="Get my account info",
)
async def get_account(
    user: User = Depends(get_current_user),
) -> AccountInfoResponse:
    """Get the authenticated player's account information."""
    return AccountInfoResponse(
        user_id=user.id,
        username=user.username,
        cash_balance=user.cash_balance,
        total_value=user.total_value if user.total_value is not None else user.cash_balance,
        profit_percent=user.profit_percent,
        rank=user.rank,
        created_at=user.created_at,
    )


# ============================================================================
# Transaction endpoints
# ============================================================================


@router.post(
    "/transactions/buy",
    response_model=TradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Buy a cryptocurrency",
)
async def buy(
    data: TradeCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    resolver: PriceResolver = Depends(get_resolver),
    locks: UserLocks = Depends(get_user_locks),
) -> TradeResponse:
    """Buy an asset at its current price.

    - **asset_id**: Asset to buy, e.g. "bitcoin"
    - **quantity**: Amount to buy (fractions allowed)

    Fails with 400 when the price is unavailable or cash is insufficient.
    """
    return await _trade(ModelTradeSide.BUY, data, user, session, resolver, locks)


@router.post(
    "/transactions/sell",
    response_model=TradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sell a cryptocurrency",
)
async def sell(
    data: TradeCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    resolver: PriceResolver = Depends(get_resolver),
    locks: UserLocks = Depends(get_user_locks),
) -> TradeResponse:
    """Sell an asset at its current price.

    - **asset_id**: Asset to sell
    - **quantity**: Amount to sell, at most what is held

    Fails with 400 when the price is unavailable or the position is too small.
    """
    return await _trade(ModelTradeSide.SELL, data, user, session, resolver, locks)


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="List my transactions",
)
async def list_transactions(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=10, ge=1, le=100, description="Trades per page"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """Get the authenticated player's trades, newest first."""
    trades = await trader_service.get_user_trades(session, user.id, page=page, limit=limit)

    return TransactionListResponse(
        count=len(trades.trades),
        total=trades.total,
        total_pages=trades.total_pages,
        current_page=trades.page,
        transactions=[_transaction_response(t) for t in trades.trades],
    )
