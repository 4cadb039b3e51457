"""Async HTTP client for the Coinlore public ticker API."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from cryptogame.config import COINLORE_API_URL, UPSTREAM_TIMEOUT_SECONDS
from cryptogame.pricing.exceptions import (
    UpstreamDataError,
    UpstreamRateLimited,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = (429, 503)


@dataclass
class Ticker:
    """One asset as reported by the provider."""

    id: str
    name: str
    symbol: str
    price_usd: Decimal
    market_cap_usd: Decimal = Decimal("0")
    volume_24h: Decimal = Decimal("0")
    percent_change_24h: Decimal = Decimal("0")
    percent_change_7d: Decimal = Decimal("0")
    circulating_supply: Decimal = Decimal("0")
    total_supply: Decimal = Decimal("0")


def _to_decimal(value: Any) -> Decimal | None:
    """Parse a numeric string (or number) into a finite Decimal."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _optional_decimal(item: dict, key: str) -> Decimal:
    return _to_decimal(item.get(key)) or Decimal("0")


def parse_ticker(item: Any) -> Ticker:
    """Build a Ticker from one provider record.

    Raises:
        UpstreamDataError: if the record lacks a name, a symbol or a
            non-negative price
    """
    if not isinstance(item, dict):
        raise UpstreamDataError(f"Expected a ticker object, got {type(item).__name__}")

    name = item.get("name")
    symbol = item.get("symbol")
    if not isinstance(name, str) or not name or not isinstance(symbol, str) or not symbol:
        raise UpstreamDataError("Ticker is missing name or symbol")

    price = _to_decimal(item.get("price_usd"))
    if price is None or price < 0:
        raise UpstreamDataError(f"Ticker {symbol} has an invalid price: {item.get('price_usd')!r}")

    return Ticker(
        id=str(item.get("id", "")),
        name=name,
        symbol=symbol.upper(),
        price_usd=price,
        market_cap_usd=_optional_decimal(item, "market_cap_usd"),
        volume_24h=_optional_decimal(item, "volume24"),
        percent_change_24h=_optional_decimal(item, "percent_change_24h"),
        percent_change_7d=_optional_decimal(item, "percent_change_7d"),
        circulating_supply=_optional_decimal(item, "csupply"),
        total_supply=_optional_decimal(item, "tsupply"),
    )


class CoinloreClient:
    """Async client for the two read-only endpoints the game relies on.

    Every failure surfaces as an UpstreamUnavailable subclass; callers never
    see raw httpx exceptions.
    """

    def __init__(
        self,
        base_url: str = COINLORE_API_URL,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the provider API
            timeout: Per-request timeout in seconds
            transport: Optional transport override (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "CoinloreClient":
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context."""
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating one if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """GET a path and decode the JSON body."""
        try:
            response = await self.client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Timed out calling {path}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Network error calling {path}: {e}") from e

        if response.status_code in RATE_LIMIT_STATUSES:
            raise UpstreamRateLimited(
                f"Rate limited on {path} (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise UpstreamUnavailable(
                f"HTTP {response.status_code} from {path}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamDataError(f"Invalid JSON from {path}") from e

    async def fetch_ticker(self, provider_id: str) -> Ticker:
        """Fetch a single asset by provider id.

        The provider normally answers with a one-element array; a bare
        object is accepted too.
        """
        payload = await self._get("/ticker/", {"id": provider_id})

        if isinstance(payload, dict):
            records = [payload]
        elif isinstance(payload, list):
            records = payload
        else:
            raise UpstreamDataError(f"Unexpected payload for ticker {provider_id}")

        if not records:
            raise UpstreamDataError(f"No ticker found for id {provider_id}")

        return parse_ticker(records[0])

    async def list_tickers(self, start: int = 0, limit: int = 100) -> list[Ticker]:
        """Fetch one page of the bulk listing.

        Individual malformed records are skipped; a malformed envelope is an
        error.
        """
        payload = await self._get("/tickers/", {"start": start, "limit": limit})

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise UpstreamDataError("Unexpected payload for ticker listing")

        tickers = []
        for item in payload["data"]:
            try:
                tickers.append(parse_ticker(item))
            except UpstreamDataError as e:
                logger.debug("Skipping malformed listing record: %s", e)
        return tickers
