"""In-memory price cache with TTL-based freshness."""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Callable

from cryptogame.pricing.quote import AssetQuote


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class CacheLookup:
    """Result of a cache read.

    ``quote`` is None exactly when ``exists`` is False.
    """

    quote: AssetQuote | None
    is_fresh: bool
    exists: bool


class PriceCache:
    """Last-known quote per asset.

    Entries are never evicted, only overwritten, so a stale entry stays
    available as a last-known-good price for as long as the process lives.
    A single lock guards the mapping; writes are rare compared to reads.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, AssetQuote] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    def get(self, asset_id: str) -> CacheLookup:
        """Look up an asset, reporting whether the entry is still fresh."""
        with self._lock:
            quote = self._entries.get(asset_id)
        if quote is None:
            return CacheLookup(quote=None, is_fresh=False, exists=False)
        is_fresh = self._clock() - quote.fetched_at < self.ttl
        return CacheLookup(quote=quote, is_fresh=is_fresh, exists=True)

    def put(self, asset_id: str, quote: AssetQuote) -> None:
        with self._lock:
            self._entries[asset_id] = quote

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
