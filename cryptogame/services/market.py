"""Market data service - listing, asset details and simulated history."""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from decimal import Decimal

from cryptogame.pricing import AssetQuote, PriceResolver, QuoteSource, Ticker

# Relative size of the random wobble added to each simulated point
HISTORY_VOLATILITY = 0.02
HISTORY_POINTS_PER_DAY = 24


@dataclass
class CryptoDetails:
    """A resolved quote plus whatever extra the provider reported."""

    quote: AssetQuote
    ticker: Ticker | None

    @property
    def percent_change_24h(self) -> Decimal:
        return self.ticker.percent_change_24h if self.ticker else Decimal("0")


async def get_market_page(
    resolver: PriceResolver, page: int = 1, limit: int = 20
) -> list[Ticker]:
    """One page of the provider's bulk listing.

    Raises:
        UpstreamUnavailable: The listing could not be fetched
    """
    return await resolver.provider.list_tickers(start=(page - 1) * limit, limit=limit)


async def get_crypto_details(resolver: PriceResolver, asset_id: str) -> CryptoDetails | None:
    """Resolve an asset and attach the provider record behind its price.

    Details come from the same resolution as the price, so a fresh cache hit
    costs no upstream call. Degraded tiers with no provider record leave
    ``ticker`` empty.

    Returns:
        None when the asset is unknown, i.e. resolution fell all the way
        through to a placeholder
    """
    quote = await resolver.resolve(asset_id)
    if quote.source == QuoteSource.PLACEHOLDER:
        return None

    return CryptoDetails(quote=quote, ticker=quote.ticker)


def simulate_price_history(
    current_price: Decimal,
    percent_change_24h: Decimal,
    days: int,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[tuple[datetime, float]]:
    """Generate an hourly price series that ends at the current price.

    The series follows a compound trend derived from the 24h change, with a
    small random wobble on every point. Purely cosmetic: the game never
    trades at these prices.
    """
    now = now or datetime.now(UTC)
    rng = rng or random.Random()

    price = float(current_price)
    trend = 1 + float(percent_change_24h) / 100 / days
    if trend <= 0:
        trend = 1.0
    start_price = price / trend ** days

    total_points = days * HISTORY_POINTS_PER_DAY
    step = timedelta(days=days) / total_points

    points = []
    for i in range(total_points):
        progress = i / total_points
        trend_price = start_price * trend ** (progress * days)
        wobble = (rng.random() - 0.5) * HISTORY_VOLATILITY * trend_price
        points.append((now - step * (total_points - i), trend_price + wobble))

    points.append((now, price))
    return points
