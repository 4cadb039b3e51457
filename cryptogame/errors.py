"""Trade-path exceptions.

Every rejection carries a stable ``code`` so API clients can tell reasons
apart without parsing the message. They subclass ValueError so routers can
keep treating them as bad requests.
"""


class TradeError(ValueError):
    """Base class for trades rejected by the ledger."""

    code = "trade_rejected"


class InsufficientFunds(TradeError):
    """The buy costs more than the available cash."""

    code = "insufficient_funds"


class InsufficientQuantity(TradeError):
    """The sell exceeds the quantity held."""

    code = "insufficient_quantity"


class PositionNotFound(TradeError):
    """The user holds nothing of the asset being sold."""

    code = "position_not_found"


class InvalidQuote(TradeError):
    """A zero or negative price was presented to a trade."""

    code = "invalid_quote"


class InvalidQuantity(TradeError):
    """The requested quantity is not strictly positive."""

    code = "invalid_quantity"


class ConcurrentTradeConflict(TradeError):
    """Another writer changed the user between read and commit."""

    code = "concurrent_trade"
