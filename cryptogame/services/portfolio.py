"""Portfolio service - P/L calculations for a single player."""

from dataclasses import dataclass
from decimal import Decimal

from cryptogame.models import User
from cryptogame.pricing import AssetQuote, PriceResolver


@dataclass
class PositionWithPnL:
    """A position with current value and profit/loss calculations."""

    asset_id: str
    name: str
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal
    price_source: str

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.average_cost

    @property
    def current_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.current_value - self.cost_basis

    @property
    def unrealized_pnl_percent(self) -> Decimal:
        if self.cost_basis == 0:
            return Decimal("0")
        return self.unrealized_pnl / self.cost_basis * 100


@dataclass
class PortfolioSummary:
    """Cash, positions and totals for one player."""

    user_id: str
    cash_balance: Decimal
    positions: list[PositionWithPnL]

    @property
    def positions_value(self) -> Decimal:
        return sum((p.current_value for p in self.positions), Decimal("0"))

    @property
    def total_value(self) -> Decimal:
        return self.cash_balance + self.positions_value

    @property
    def total_cost_basis(self) -> Decimal:
        return sum((p.cost_basis for p in self.positions), Decimal("0"))

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.positions_value - self.total_cost_basis


def _with_pnl(position, quote: AssetQuote) -> PositionWithPnL:
    return PositionWithPnL(
        asset_id=position.asset_id,
        name=quote.name,
        symbol=quote.symbol,
        quantity=position.quantity,
        average_cost=position.average_cost,
        current_price=quote.price,
        price_source=quote.source.value,
    )


async def get_portfolio(user: User, resolver: PriceResolver) -> PortfolioSummary:
    """Value a player's positions at current prices.

    Args:
        user: The player, with positions loaded
        resolver: Price resolver

    Returns:
        Portfolio summary. Positions whose asset resolves to a placeholder
        are valued at zero.
    """
    quotes = await resolver.resolve_many(p.asset_id for p in user.positions)

    return PortfolioSummary(
        user_id=user.id,
        cash_balance=user.cash_balance,
        positions=[_with_pnl(p, quotes[p.asset_id]) for p in user.positions],
    )
