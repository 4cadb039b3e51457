"""Tests for the price resolver's fallback chain."""

import asyncio
from decimal import Decimal

import pytest

from cryptogame.pricing import (
    AssetQuote,
    PriceCache,
    PriceResolver,
    QuoteSource,
    UpstreamDataError,
    UpstreamRateLimited,
    UpstreamUnavailable,
)

from conftest import FakeProvider, make_ticker


def rate_limited():
    return UpstreamRateLimited("HTTP 429", status_code=429)


def fail_everything(provider):
    """Make every upstream call for the known ids fail without rate limiting."""
    for provider_id in ("90", "80", "48543", "3890"):
        provider.errors[provider_id] = [UpstreamUnavailable("HTTP 500", status_code=500)]
    provider.listing_error = UpstreamUnavailable("HTTP 500", status_code=500)


class TestLiveAndCache:
    """Tests for the fresh-cache and live-fetch steps."""

    @pytest.mark.asyncio
    async def test_live_fetch(self, resolver, provider):
        quote = await resolver.resolve("bitcoin")

        assert quote.source == QuoteSource.LIVE
        assert quote.price == Decimal("1000")
        assert quote.name == "Bitcoin"
        assert quote.symbol == "BTC"
        assert provider.fetch_calls == ["90"]
        assert provider.listing_calls == 0

    @pytest.mark.asyncio
    async def test_fresh_cache_makes_no_network_calls(self, resolver, provider, clock):
        await resolver.resolve("bitcoin")
        calls_before = provider.network_calls

        clock.advance(minutes=5)
        quote = await resolver.resolve("bitcoin")

        assert provider.network_calls == calls_before
        assert quote.price == Decimal("1000")
        assert quote.source == QuoteSource.LIVE

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, resolver, provider, clock):
        await resolver.resolve("bitcoin")
        provider.tickers["90"] = make_ticker("90", "Bitcoin", "BTC", "1200")

        clock.advance(minutes=11)
        quote = await resolver.resolve("bitcoin")

        assert quote.price == Decimal("1200")
        assert provider.fetch_calls == ["90", "90"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("asset_id", ["80", "coin-80"])
    async def test_literal_provider_ids(self, resolver, provider, asset_id):
        quote = await resolver.resolve(asset_id)

        assert provider.fetch_calls == ["80"]
        assert quote.symbol == "ETH"
        assert quote.asset_id == asset_id


class TestRetries:
    """Tests for rate-limit retries."""

    @pytest.mark.asyncio
    async def test_retries_after_rate_limit(self, resolver, provider, sleeps):
        provider.errors["90"] = [rate_limited(), rate_limited()]

        quote = await resolver.resolve("bitcoin")

        assert quote.source == QuoteSource.LIVE
        assert len(provider.fetch_calls) == 3
        assert sleeps == [1.0, 3.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, resolver, provider, sleeps):
        provider.errors["90"] = [rate_limited(), rate_limited(), rate_limited()]

        quote = await resolver.resolve("bitcoin")

        assert len(provider.fetch_calls) == 3
        assert sleeps == [1.0, 3.0]
        # Listing still knows bitcoin by name
        assert quote.source == QuoteSource.LISTING
        assert quote.price == Decimal("1000")

    @pytest.mark.asyncio
    async def test_other_failures_are_not_retried(self, resolver, provider, sleeps):
        provider.errors["90"] = [UpstreamDataError("empty payload")]

        quote = await resolver.resolve("bitcoin")

        assert provider.fetch_calls == ["90"]
        assert sleeps == []
        assert quote.source == QuoteSource.LISTING

    @pytest.mark.asyncio
    async def test_custom_schedule(self, provider, clock, sleeps):
        resolver = PriceResolver(
            provider,
            PriceCache(clock=clock),
            retry_delays=(0.5,),
            max_attempts=4,
            sleep=sleeps,
        )
        provider.errors["90"] = [rate_limited(), rate_limited(), rate_limited()]

        quote = await resolver.resolve("bitcoin")

        assert quote.source == QuoteSource.LIVE
        assert sleeps == [0.5, 0.5, 0.5]


class TestFallbacks:
    """Tests for the listing, stale, reference and placeholder steps."""

    @pytest.mark.asyncio
    async def test_listing_match_by_symbol(self, resolver, provider):
        quote = await resolver.resolve("ETH")

        # Unmapped, non-numeric ids skip the live fetch
        assert provider.fetch_calls == []
        assert quote.source == QuoteSource.LISTING
        assert quote.price == Decimal("100")
        assert quote.name == "Ethereum"

    @pytest.mark.asyncio
    async def test_listing_match_is_cached(self, resolver, provider):
        await resolver.resolve("ETH")
        calls_before = provider.network_calls

        await resolver.resolve("ETH")

        assert provider.network_calls == calls_before

    @pytest.mark.asyncio
    async def test_stale_cache_when_upstream_fails(self, resolver, provider, clock):
        await resolver.resolve("bitcoin")
        fail_everything(provider)

        clock.advance(hours=5)
        quote = await resolver.resolve("bitcoin")

        assert quote.source == QuoteSource.STALE
        assert quote.is_degraded
        assert quote.price == Decimal("1000")

    @pytest.mark.asyncio
    async def test_reference_price_when_nothing_cached(self, resolver, provider):
        fail_everything(provider)

        quote = await resolver.resolve("solana")

        assert quote.source == QuoteSource.REFERENCE
        assert quote.price == Decimal("100")
        assert quote.symbol == "SOL"

    @pytest.mark.asyncio
    async def test_reference_price_is_cached(self, resolver, provider):
        fail_everything(provider)
        await resolver.resolve("solana")
        calls_before = provider.network_calls

        quote = await resolver.resolve("solana")

        assert provider.network_calls == calls_before
        assert quote.source == QuoteSource.REFERENCE

    @pytest.mark.asyncio
    async def test_placeholder_when_nothing_known(self, resolver, provider):
        fail_everything(provider)

        quote = await resolver.resolve("matic-network")

        assert quote.source == QuoteSource.PLACEHOLDER
        assert quote.price == Decimal("0")
        assert quote.name == "Matic network"
        assert quote.symbol == "MAT"
        assert not quote.is_usable_for_trade
        assert resolver.cache.get("matic-network").exists is False

    @pytest.mark.asyncio
    async def test_unknown_id_gives_placeholder_without_raising(self, resolver):
        quote = await resolver.resolve("no-such-coin")

        assert quote.source == QuoteSource.PLACEHOLDER
        assert quote.name == "No such coin"
        assert quote.symbol == "NO-"


class TestResolveMany:
    """Tests for batch resolution."""

    @pytest.mark.asyncio
    async def test_each_distinct_asset_resolved_once(self, resolver, provider):
        quotes = await resolver.resolve_many(["bitcoin", "ethereum", "bitcoin", "ethereum"])

        assert set(quotes) == {"bitcoin", "ethereum"}
        assert sorted(provider.fetch_calls) == ["80", "90"]
        assert quotes["bitcoin"].price == Decimal("1000")

    @pytest.mark.asyncio
    async def test_empty(self, resolver, provider):
        assert await resolver.resolve_many([]) == {}
        assert provider.network_calls == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, clock, sleeps):
        class SlowProvider(FakeProvider):
            in_flight = 0
            peak = 0

            async def fetch_ticker(self, provider_id):
                SlowProvider.in_flight += 1
                SlowProvider.peak = max(SlowProvider.peak, SlowProvider.in_flight)
                await asyncio.sleep(0.01)
                SlowProvider.in_flight -= 1
                return make_ticker(provider_id, f"Coin {provider_id}", "CN", "1")

        resolver = PriceResolver(SlowProvider(), PriceCache(clock=clock), sleep=sleeps)

        quotes = await resolver.resolve_many([str(i) for i in range(1, 11)], concurrency=3)

        assert len(quotes) == 10
        assert SlowProvider.peak <= 3
        assert all(isinstance(q, AssetQuote) for q in quotes.values())
