"""Market data API endpoints - public, no authentication."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from cryptogame.dependencies import get_resolver
from cryptogame.pricing import PriceResolver, UpstreamUnavailable
from cryptogame.schemas.market import (
    CryptoDetailResponse,
    MarketListResponse,
    MarketTicker,
    PriceHistoryResponse,
    PricePoint,
)
from cryptogame.services import market as market_service

router = APIRouter()


async def _details_or_404(resolver: PriceResolver, asset_id: str):
    details = await market_service.get_crypto_details(resolver, asset_id)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cryptocurrency '{asset_id}' not found",
        )
    return details


@router.get(
    "/crypto/market",
    response_model=MarketListResponse,
    summary="List cryptocurrencies",
)
async def get_market(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Assets per page"),
    resolver: PriceResolver = Depends(get_resolver),
) -> MarketListResponse:
    """Get a page of the market listing, ordered by market cap."""
    try:
        tickers = await market_service.get_market_page(resolver, page=page, limit=limit)
    except UpstreamUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Market data is temporarily unavailable: {e}",
        )

    return MarketListResponse(
        current_page=page,
        limit=limit,
        cryptos=[
            MarketTicker(
                id=t.id,
                name=t.name,
                symbol=t.symbol,
                price=t.price_usd,
                market_cap=t.market_cap_usd,
                volume_24h=t.volume_24h,
                percent_change_24h=t.percent_change_24h,
            )
            for t in tickers
        ],
    )


@router.get(
    "/crypto/{asset_id}",
    response_model=CryptoDetailResponse,
    summary="Get cryptocurrency details",
)
async def get_crypto(
    asset_id: str,
    resolver: PriceResolver = Depends(get_resolver),
) -> CryptoDetailResponse:
    """Get the current price of an asset, plus market details when available.

    The price may come from a fallback tier; check **price_source** and
    **is_degraded**.
    """
    details = await _details_or_404(resolver, asset_id)
    quote, ticker = details.quote, details.ticker

    response = CryptoDetailResponse(
        asset_id=asset_id,
        name=quote.name,
        symbol=quote.symbol,
        price=quote.price,
        price_source=quote.source.value,
        is_degraded=quote.is_degraded,
    )
    if ticker is not None:
        response.market_cap = ticker.market_cap_usd
        response.volume_24h = ticker.volume_24h
        response.percent_change_24h = ticker.percent_change_24h
        response.percent_change_7d = ticker.percent_change_7d
        response.circulating_supply = ticker.circulating_supply
        response.total_supply = ticker.total_supply
    return response


@router.get(
    "/crypto/{asset_id}/history",
    response_model=PriceHistoryResponse,
    summary="Get simulated price history",
)
async def get_crypto_history(
    asset_id: str,
    days: int = Query(default=7, ge=1, le=365, description="Days of history"),
    resolver: PriceResolver = Depends(get_resolver),
) -> PriceHistoryResponse:
    """Get an hourly price series for charting.

    The series is simulated from the current price and the 24h change; it
    always ends at the current price.
    """
    details = await _details_or_404(resolver, asset_id)
    points = market_service.simulate_price_history(
        details.quote.price, details.percent_change_24h, days
    )

    return PriceHistoryResponse(
        asset_id=asset_id,
        days=days,
        prices=[PricePoint(timestamp=ts, price=price) for ts, price in points],
    )
