"""
Runtime configuration for the crypto trading game.

Every setting is read from the environment once, at import time.
"""

import os
from decimal import Decimal

# Database URL, defaults to SQLite for local development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./cryptogame.db")

# Cash every new player starts with, and the baseline for profit percentages
INITIAL_BALANCE = Decimal(os.getenv("INITIAL_BALANCE", "10000"))

# How long a fetched quote counts as fresh
PRICE_CACHE_TTL_SECONDS = float(os.getenv("PRICE_CACHE_TTL_SECONDS", "600"))

# Upstream price provider (Coinlore-compatible API)
COINLORE_API_URL = os.getenv("COINLORE_API_URL", "https://api.coinlore.net/api")
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "15"))

# Number of tickers scanned when matching an asset by name or symbol
LISTING_LIMIT = int(os.getenv("LISTING_LIMIT", "100"))

# Delay schedule (seconds) between attempts when the provider rate limits us
RETRY_DELAYS = tuple(
    float(d) for d in os.getenv("UPSTREAM_RETRY_DELAYS", "1,3,5").split(",") if d.strip()
)
MAX_FETCH_ATTEMPTS = int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "3"))

# Upper bound on concurrent price resolutions during a leaderboard rebuild
VALUATION_CONCURRENCY = int(os.getenv("VALUATION_CONCURRENCY", "8"))
