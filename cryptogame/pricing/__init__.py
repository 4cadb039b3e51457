"""Price resolution: upstream client, cache and fallback chain."""

from cryptogame.pricing.cache import CacheLookup, PriceCache
from cryptogame.pricing.coinlore import CoinloreClient, Ticker
from cryptogame.pricing.exceptions import (
    UpstreamDataError,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from cryptogame.pricing.quote import AssetQuote, QuoteSource
from cryptogame.pricing.resolver import PriceProvider, PriceResolver

__all__ = [
    "AssetQuote",
    "CacheLookup",
    "CoinloreClient",
    "PriceCache",
    "PriceProvider",
    "PriceResolver",
    "QuoteSource",
    "Ticker",
    "UpstreamDataError",
    "UpstreamRateLimited",
    "UpstreamUnavailable",
]
