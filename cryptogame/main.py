"""
FastAPI application entry point.

Run with: uvicorn cryptogame.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from cryptogame import telemetry
from cryptogame._version import VERSION
from cryptogame.config import PRICE_CACHE_TTL_SECONDS
from cryptogame.database import init_db

# Import models to ensure they're registered with SQLAlchemy
from cryptogame.models import Position, TradeRecord, User  # noqa: F401
from cryptogame.pricing import CoinloreClient, PriceCache, PriceResolver
from cryptogame.routers import (
    admin_router,
    leaderboard_router,
    market_router,
    portfolio_router,
    trader_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry,
    open the upstream price client.
    Shutdown: Close the upstream price client.
    """
    # Startup
    await init_db()
    logger.info("Database initialized")

    if telemetry.setup_telemetry():
        # Attach OTLP handler to root logger for log export
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
            logging.getLogger().setLevel(logging.INFO)
        telemetry.setup_leaderboard_metrics()
        logger.info("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        logger.info("Telemetry disabled")

    client = CoinloreClient()
    app.state.resolver = PriceResolver(
        client,
        PriceCache(ttl=timedelta(seconds=PRICE_CACHE_TTL_SECONDS)),
    )

    yield

    # Shutdown
    await client.aclose()
    logger.info("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title="Crypto Trading Game API",
    description="Trade cryptocurrencies with virtual cash and climb the leaderboard",
    version=VERSION,
    lifespan=lifespan,
)


# Register routers
# Admin routes stay at /admin (no API versioning for admin)
app.include_router(admin_router, prefix="/admin", tags=["admin"])
# Player and market routes under /api/v1
app.include_router(trader_router, prefix="/api/v1", tags=["trader"])
app.include_router(portfolio_router, prefix="/api/v1", tags=["portfolio"])
app.include_router(leaderboard_router, prefix="/api/v1", tags=["leaderboard"])
app.include_router(market_router, prefix="/api/v1", tags=["market"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/version")
async def get_version():
    """Get API version information."""
    return {
        "version": VERSION,
        "api_version": "v1",
    }
