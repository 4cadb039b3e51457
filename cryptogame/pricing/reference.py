"""Static lookup tables for the price resolver.

Both tables are keyed by the caller-facing asset identifier.
"""

from decimal import Decimal

# Caller-facing asset id -> Coinlore numeric id
PROVIDER_IDS: dict[str, str] = {
    "bitcoin": "90",
    "ethereum": "80",
    "ripple": "58",
    "cardano": "2010",
    "solana": "48543",
    "polkadot": "41417",
    "dogecoin": "2",
    "binancecoin": "2710",
    "matic-network": "3890",
}

# Prefix that marks an identifier as a literal provider id ("coin-90")
LITERAL_ID_PREFIX = "coin-"

# Rough reference prices, used only when every live source has failed.
# (price, name, symbol)
REFERENCE_PRICES: dict[str, tuple[Decimal, str, str]] = {
    "bitcoin": (Decimal("40000"), "Bitcoin", "BTC"),
    "ethereum": (Decimal("2000"), "Ethereum", "ETH"),
    "binancecoin": (Decimal("300"), "Binance Coin", "BNB"),
    "solana": (Decimal("100"), "Solana", "SOL"),
    "cardano": (Decimal("0.50"), "Cardano", "ADA"),
    "ripple": (Decimal("0.50"), "XRP", "XRP"),
}


def provider_id_for(asset_id: str) -> str | None:
    """Translate an asset id to the provider's id.

    Unmapped identifiers are used literally only when they are purely
    numeric or carry the literal-id prefix. Returns None otherwise.
    """
    mapped = PROVIDER_IDS.get(asset_id)
    if mapped is not None:
        return mapped
    if asset_id.isdigit():
        return asset_id
    if asset_id.startswith(LITERAL_ID_PREFIX):
        literal = asset_id[len(LITERAL_ID_PREFIX):]
        return literal or None
    return None


def placeholder_name(asset_id: str) -> str:
    """Best-effort display name derived from the identifier ("matic-network" -> "Matic network")."""
    if not asset_id:
        return ""
    return (asset_id[0].upper() + asset_id[1:]).replace("-", " ")


def placeholder_symbol(asset_id: str) -> str:
    return asset_id[:3].upper()
