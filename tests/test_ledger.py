"""Tests for the weighted-average cost-basis ledger."""

from decimal import Decimal

import pytest

from cryptogame.errors import (
    InsufficientFunds,
    InsufficientQuantity,
    InvalidQuantity,
    InvalidQuote,
    PositionNotFound,
    TradeError,
)
from cryptogame.models import TradeSide, User
from cryptogame.services.ledger import apply_buy, apply_sell


def D(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def user():
    return User(id="u1", username="alice", api_key_hash="0" * 64, cash_balance=D(10000))


class TestApplyBuy:
    """Tests for apply_buy."""

    def test_first_buy_opens_position(self, user):
        entry = apply_buy(user, "bitcoin", D(2), D(100), name="Bitcoin", symbol="btc")

        assert user.cash_balance == D(9800)
        assert entry.position.quantity == D(2)
        assert entry.position.average_cost == D(100)
        assert user.get_position("bitcoin") is entry.position

        trade = entry.trade
        assert trade.side == TradeSide.BUY
        assert trade.total == D(200)
        assert trade.asset_name == "Bitcoin"
        assert trade.asset_symbol == "BTC"
        assert trade.user_id == "u1"

    @pytest.mark.parametrize("prices", [(100, 200), (200, 100)])
    def test_average_cost_is_order_independent(self, user, prices):
        for price in prices:
            apply_buy(user, "bitcoin", D(1), D(price))

        position = user.get_position("bitcoin")
        assert position.quantity == D(2)
        assert position.average_cost == D(150)

    def test_average_cost_is_weighted_by_quantity(self, user):
        apply_buy(user, "bitcoin", D(3), D(100))
        apply_buy(user, "bitcoin", D(1), D(500))

        assert user.get_position("bitcoin").average_cost == D(200)

    def test_fractional_quantities(self, user):
        apply_buy(user, "ethereum", D("0.5"), D("2000"))
        apply_buy(user, "ethereum", D("0.25"), D("2600"))

        position = user.get_position("ethereum")
        assert position.quantity == D("0.75")
        assert position.average_cost == D("2200")
        assert user.cash_balance == D("8350")

    def test_spending_exact_balance_is_allowed(self, user):
        apply_buy(user, "bitcoin", D(10), D(1000))

        assert user.cash_balance == D(0)

    def test_insufficient_funds_leaves_state_unchanged(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))

        with pytest.raises(InsufficientFunds):
            apply_buy(user, "bitcoin", D(100), D(100))

        assert user.cash_balance == D(9900)
        position = user.get_position("bitcoin")
        assert position.quantity == D(1)
        assert position.average_cost == D(100)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity(self, user, quantity):
        with pytest.raises(InvalidQuantity):
            apply_buy(user, "bitcoin", D(quantity), D(100))

        assert user.positions == []

    def test_quantity_finer_than_storage(self, user):
        with pytest.raises(InvalidQuantity):
            apply_buy(user, "bitcoin", D("0.00000000001"), D(1000))

        assert user.positions == []
        assert user.cash_balance == D(10000)

    def test_trailing_zeros_do_not_count_as_precision(self, user):
        entry = apply_buy(user, "bitcoin", D("0.500000000000000"), D(100))

        assert entry.position.quantity == D("0.5")

    def test_zero_price(self, user):
        with pytest.raises(InvalidQuote):
            apply_buy(user, "bitcoin", D(1), D(0))

        assert user.cash_balance == D(10000)


class TestApplySell:
    """Tests for apply_sell."""

    def test_partial_sell_keeps_average_cost(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))
        apply_buy(user, "bitcoin", D(1), D(200))

        entry = apply_sell(user, "bitcoin", D("0.5"), D(300))

        assert entry.position.quantity == D("1.5")
        assert entry.position.average_cost == D(150)
        assert user.cash_balance == D(10000) - D(300) + D(150)
        assert entry.trade.side == TradeSide.SELL
        assert entry.trade.total == D(150)

    def test_selling_everything_removes_position(self, user):
        apply_buy(user, "bitcoin", D(1), D(1000))

        entry = apply_sell(user, "bitcoin", D(1), D(1200))

        assert entry.position is None
        assert user.get_position("bitcoin") is None
        assert user.cash_balance == D(10200)

    def test_position_not_found(self, user):
        with pytest.raises(PositionNotFound):
            apply_sell(user, "bitcoin", D(1), D(100))

    def test_insufficient_quantity_leaves_state_unchanged(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))

        with pytest.raises(InsufficientQuantity):
            apply_sell(user, "bitcoin", D(2), D(100))

        assert user.get_position("bitcoin").quantity == D(1)
        assert user.cash_balance == D(9900)

    def test_remainder_finer_than_storage_rejected(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))

        with pytest.raises(InvalidQuantity):
            apply_sell(user, "bitcoin", D("0.99999999999"), D(100))

        assert user.get_position("bitcoin").quantity == D(1)
        assert user.cash_balance == D(9900)

    def test_smallest_storable_remainder(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))

        entry = apply_sell(user, "bitcoin", D("0.9999999999"), D(100))

        assert entry.position.quantity == D("0.0000000001")

    def test_zero_price(self, user):
        apply_buy(user, "bitcoin", D(1), D(100))

        with pytest.raises(InvalidQuote):
            apply_sell(user, "bitcoin", D(1), D(0))

        assert user.get_position("bitcoin").quantity == D(1)

    def test_quantity_is_buys_minus_sells(self, user):
        apply_buy(user, "bitcoin", D(3), D(10))
        apply_sell(user, "bitcoin", D(1), D(10))
        apply_buy(user, "bitcoin", D(2), D(10))
        apply_sell(user, "bitcoin", D("1.5"), D(10))

        assert user.get_position("bitcoin").quantity == D("2.5")


class TestErrors:
    """Tests for the error taxonomy."""

    def test_trade_errors_are_value_errors_with_codes(self):
        codes = {
            InsufficientFunds: "insufficient_funds",
            InsufficientQuantity: "insufficient_quantity",
            PositionNotFound: "position_not_found",
            InvalidQuote: "invalid_quote",
            InvalidQuantity: "invalid_quantity",
        }
        for error_class, code in codes.items():
            assert issubclass(error_class, TradeError)
            assert issubclass(error_class, ValueError)
            assert error_class.code == code
