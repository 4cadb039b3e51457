"""Quote value objects shared by the cache and the resolver."""

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from cryptogame.pricing.coinlore import Ticker


class QuoteSource(str, enum.Enum):
    """Which step of the fallback chain produced a quote.

    A fresh cache hit keeps the source of the entry it returns.
    """

    LIVE = "live"
    LISTING = "listing"
    STALE = "stale"
    REFERENCE = "reference"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class AssetQuote:
    """Price, name and symbol of an asset at a point in time.

    ``ticker`` is the provider record behind a live or listing quote, kept so
    market details can be served from the cache.
    """

    asset_id: str
    price: Decimal
    name: str
    symbol: str
    fetched_at: datetime
    source: QuoteSource = QuoteSource.LIVE
    ticker: Ticker | None = field(default=None, compare=False, repr=False)

    @property
    def is_degraded(self) -> bool:
        """True when the price did not come from a fresh upstream answer."""
        return self.source in (
            QuoteSource.STALE,
            QuoteSource.REFERENCE,
            QuoteSource.PLACEHOLDER,
        )

    @property
    def is_usable_for_trade(self) -> bool:
        return self.price > 0

    def with_source(self, source: QuoteSource) -> "AssetQuote":
        return replace(self, source=source)
