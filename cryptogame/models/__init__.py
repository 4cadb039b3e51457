"""
SQLAlchemy models for the crypto trading game.

This module exports all models and the Base class for easy imports:
    from cryptogame.models import Base, User, Position, TradeRecord
"""

from cryptogame.database import Base
from cryptogame.models.user import User
from cryptogame.models.position import QUANTITY_SCALE, Position
from cryptogame.models.trade import TradeRecord, TradeSide

__all__ = [
    "Base",
    "User",
    "Position",
    "QUANTITY_SCALE",
    "TradeRecord",
    "TradeSide",
]
