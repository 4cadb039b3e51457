"""Price resolution with caching and a multi-step fallback chain.

Order of preference for a requested asset:

1. Fresh cache entry (no network call)
2. Live fetch by provider id, retrying on rate limits
3. Case-insensitive name/symbol match in the bulk listing
4. Stale cache entry of any age
5. Static reference price
6. Zero-price placeholder

resolve() never raises. Callers that need a real price (trades) must check
the returned price themselves.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Awaitable, Callable, Iterable, Protocol

from cryptogame import telemetry
from cryptogame.config import LISTING_LIMIT, MAX_FETCH_ATTEMPTS, RETRY_DELAYS, VALUATION_CONCURRENCY
from cryptogame.pricing.cache import PriceCache
from cryptogame.pricing.coinlore import Ticker
from cryptogame.pricing.exceptions import UpstreamRateLimited, UpstreamUnavailable
from cryptogame.pricing.quote import AssetQuote, QuoteSource
from cryptogame.pricing.reference import (
    REFERENCE_PRICES,
    placeholder_name,
    placeholder_symbol,
    provider_id_for,
)

logger = logging.getLogger(__name__)


class PriceProvider(Protocol):
    """The two upstream operations the resolver depends on."""

    async def fetch_ticker(self, provider_id: str) -> Ticker:
        ...

    async def list_tickers(self, start: int = 0, limit: int = 100) -> list[Ticker]:
        ...


class PriceResolver:
    """Turns asset ids into quotes, degrading instead of failing."""

    def __init__(
        self,
        provider: PriceProvider,
        cache: PriceCache | None = None,
        *,
        retry_delays: tuple[float, ...] = RETRY_DELAYS,
        max_attempts: int = MAX_FETCH_ATTEMPTS,
        listing_limit: int = LISTING_LIMIT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the resolver.

        Args:
            provider: Upstream price provider
            cache: Cache instance; a private one is created when omitted
            retry_delays: Pause before each retry after a rate-limited attempt
            max_attempts: Total live fetch attempts per resolution
            listing_limit: Number of listing entries scanned for a name match
            sleep: Awaitable sleep, replaced in tests to avoid real delays
        """
        self.provider = provider
        self.cache = cache if cache is not None else PriceCache()
        self.retry_delays = retry_delays
        self.max_attempts = max(1, max_attempts)
        self.listing_limit = listing_limit
        self._sleep = sleep

    async def resolve(self, asset_id: str) -> AssetQuote:
        """Resolve an asset id to a quote. Never raises."""
        lookup = self.cache.get(asset_id)
        if lookup.is_fresh:
            logger.debug("Using cached price for %s", asset_id)
            telemetry.record_quote(asset_id, "cache_hit")
            return lookup.quote

        provider_id = provider_id_for(asset_id)
        if provider_id is None:
            logger.warning("Unrecognized asset id %s, skipping live fetch", asset_id)
        else:
            quote = await self._fetch_live(asset_id, provider_id)
            if quote is not None:
                return self._resolved(quote)

        quote = await self._match_listing(asset_id)
        if quote is not None:
            return self._resolved(quote)

        # Re-read: a concurrent resolution may have refreshed the entry meanwhile
        lookup = self.cache.get(asset_id)
        if lookup.exists:
            if lookup.is_fresh:
                return lookup.quote
            logger.warning("Using expired cache for %s as fallback", asset_id)
            return self._resolved(lookup.quote.with_source(QuoteSource.STALE))

        quote = self._reference_quote(asset_id)
        if quote is not None:
            logger.warning(
                "Using reference price for %s: %s USD", asset_id, quote.price
            )
            self.cache.put(asset_id, quote)
            return self._resolved(quote)

        logger.error("No price data available for %s, returning placeholder", asset_id)
        return self._resolved(self._placeholder_quote(asset_id))

    async def resolve_many(
        self, asset_ids: Iterable[str], concurrency: int = VALUATION_CONCURRENCY
    ) -> dict[str, AssetQuote]:
        """Resolve each distinct asset exactly once, a bounded number at a time."""
        distinct = sorted(set(asset_ids))
        if not distinct:
            return {}

        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def worker(asset_id: str) -> AssetQuote:
            async with semaphore:
                return await self.resolve(asset_id)

        quotes = await asyncio.gather(*(worker(a) for a in distinct))
        return dict(zip(distinct, quotes))

    async def _fetch_live(self, asset_id: str, provider_id: str) -> AssetQuote | None:
        """Fetch from the provider, pausing and retrying while rate limited."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                logger.debug(
                    "Fetching %s (provider id %s), attempt %d/%d",
                    asset_id, provider_id, attempt, self.max_attempts,
                )
                ticker = await self.provider.fetch_ticker(provider_id)
            except UpstreamRateLimited as e:
                telemetry.record_upstream_failure("rate_limited")
                if attempt >= self.max_attempts:
                    logger.error(
                        "Still rate limited for %s after %d attempts", asset_id, attempt
                    )
                    return None
                delay = self._retry_delay(attempt)
                logger.warning(
                    "Rate limited for %s (HTTP %s), retrying in %.1fs",
                    asset_id, e.status_code, delay,
                )
                await self._sleep(delay)
            except UpstreamUnavailable as e:
                telemetry.record_upstream_failure(type(e).__name__)
                logger.error("Error fetching price for %s: %s", asset_id, e)
                return None
            else:
                quote = self._quote_from_ticker(asset_id, ticker, QuoteSource.LIVE)
                self.cache.put(asset_id, quote)
                logger.info("Fetched price for %s: %s USD", asset_id, quote.price)
                return quote
        return None

    def _retry_delay(self, attempt: int) -> float:
        if not self.retry_delays:
            return 0.0
        return self.retry_delays[min(attempt - 1, len(self.retry_delays) - 1)]

    async def _match_listing(self, asset_id: str) -> AssetQuote | None:
        """Look for the asset by name or symbol in the bulk listing."""
        try:
            tickers = await self.provider.list_tickers(start=0, limit=self.listing_limit)
        except UpstreamUnavailable as e:
            telemetry.record_upstream_failure(type(e).__name__)
            logger.error("Failed to fetch ticker listing: %s", e)
            return None

        needle = asset_id.lower()
        for ticker in tickers:
            if ticker.name.lower() == needle or ticker.symbol.lower() == needle:
                quote = self._quote_from_ticker(asset_id, ticker, QuoteSource.LISTING)
                self.cache.put(asset_id, quote)
                logger.info(
                    "Matched %s in ticker listing: %s USD", asset_id, quote.price
                )
                return quote
        return None

    def _quote_from_ticker(
        self, asset_id: str, ticker: Ticker, source: QuoteSource
    ) -> AssetQuote:
        return AssetQuote(
            asset_id=asset_id,
            price=ticker.price_usd,
            name=ticker.name,
            symbol=ticker.symbol.upper(),
            fetched_at=self.cache.now(),
            source=source,
            ticker=ticker,
        )

    def _reference_quote(self, asset_id: str) -> AssetQuote | None:
        reference = REFERENCE_PRICES.get(asset_id)
        if reference is None:
            return None
        price, name, symbol = reference
        return AssetQuote(
            asset_id=asset_id,
            price=price,
            name=name,
            symbol=symbol,
            fetched_at=self.cache.now(),
            source=QuoteSource.REFERENCE,
        )

    def _placeholder_quote(self, asset_id: str) -> AssetQuote:
        return AssetQuote(
            asset_id=asset_id,
            price=Decimal("0"),
            name=placeholder_name(asset_id),
            symbol=placeholder_symbol(asset_id),
            fetched_at=self.cache.now(),
            source=QuoteSource.PLACEHOLDER,
        )

    def _resolved(self, quote: AssetQuote) -> AssetQuote:
        telemetry.record_quote(quote.asset_id, quote.source.value)
        return quote
