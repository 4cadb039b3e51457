"""
Shared pytest fixtures for testing the crypto trading game.

Uses an in-memory SQLite database for fast, isolated tests, and a fake
price provider so no test ever touches the network.
"""

from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cryptogame.database import Base, get_session, get_session_factory
from cryptogame.dependencies import get_resolver
from cryptogame.main import app
from cryptogame.models import User
from cryptogame.pricing import PriceCache, PriceResolver, Ticker, UpstreamUnavailable
from cryptogame.services.admin import generate_api_key, hash_api_key


# Use in-memory SQLite for tests (fast, isolated)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# --- Pricing fakes ---


def make_ticker(provider_id: str, name: str, symbol: str, price: str, **extra) -> Ticker:
    """Build a provider ticker with a string price, as the provider sends it."""
    return Ticker(id=provider_id, name=name, symbol=symbol, price_usd=Decimal(price), **extra)


class FakeProvider:
    """In-memory stand-in for the Coinlore client.

    ``tickers`` maps provider ids to tickers. ``errors`` maps provider ids to
    a list of exceptions raised, one per call, before the ticker is served.
    Unknown ids fail like an HTTP 404.
    """

    def __init__(self, tickers=None, listing=None):
        self.tickers: dict[str, Ticker] = dict(tickers or {})
        self.listing: list[Ticker] = list(listing or [])
        self.errors: dict[str, list[Exception]] = {}
        self.listing_error: Exception | None = None
        self.fetch_calls: list[str] = []
        self.listing_calls = 0

    async def fetch_ticker(self, provider_id: str) -> Ticker:
        self.fetch_calls.append(provider_id)
        pending = self.errors.get(provider_id)
        if pending:
            raise pending.pop(0)
        if provider_id not in self.tickers:
            raise UpstreamUnavailable(f"HTTP 404 for {provider_id}", status_code=404)
        return self.tickers[provider_id]

    async def list_tickers(self, start: int = 0, limit: int = 100) -> list[Ticker]:
        self.listing_calls += 1
        if self.listing_error is not None:
            raise self.listing_error
        return self.listing[start:start + limit]

    @property
    def network_calls(self) -> int:
        return len(self.fetch_calls) + self.listing_calls


class FakeClock:
    """Manually advanced clock for cache freshness tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordedSleeps(list):
    """Async sleep replacement that records requested delays instead of waiting."""

    async def __call__(self, delay: float) -> None:
        self.append(delay)


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio backend for pytest-asyncio."""
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return RecordedSleeps()


@pytest.fixture
def provider():
    """Provider that knows bitcoin and ethereum by id and lists both."""
    bitcoin = make_ticker(
        "90", "Bitcoin", "BTC", "1000",
        market_cap_usd=Decimal("19000000000"),
        percent_change_24h=Decimal("2.5"),
    )
    ethereum = make_ticker("80", "Ethereum", "ETH", "100")
    return FakeProvider(
        tickers={"90": bitcoin, "80": ethereum},
        listing=[bitcoin, ethereum],
    )


@pytest.fixture
def resolver(provider, clock, sleeps):
    return PriceResolver(provider, PriceCache(clock=clock), sleep=sleeps)


# --- Database fixtures ---


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine.

    Creates tables at the start, drops them at the end.
    Each test gets a fresh database.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_session(session_factory):
    """Provide a database session for a test.

    Rolls back the session after each test for isolation.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(session_factory, resolver):
    """Provide a FastAPI test client with test database and fake prices.

    Overrides the session, session factory and resolver dependencies.
    """

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_resolver] = lambda: resolver

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# --- Helper fixtures for creating test data ---


async def create_player(session, user_id: str, username: str, cash: str = "10000"):
    """Insert a player and return it together with its API key."""
    api_key = generate_api_key()
    user = User(
        id=user_id,
        username=username,
        api_key_hash=hash_api_key(api_key),
        cash_balance=Decimal(cash),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user, api_key


@pytest_asyncio.fixture
async def player(test_session):
    """A player with 10000 cash and no positions."""
    return await create_player(test_session, "user-1", "alice")


@pytest.fixture
def auth_headers(player):
    _, api_key = player
    return {"X-API-Key": api_key}
