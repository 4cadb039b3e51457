"""API routers."""

from cryptogame.routers.admin import router as admin_router
from cryptogame.routers.leaderboard import router as leaderboard_router
from cryptogame.routers.market import router as market_router
from cryptogame.routers.portfolio import router as portfolio_router
from cryptogame.routers.trader import router as trader_router

__all__ = [
    "admin_router",
    "leaderboard_router",
    "market_router",
    "portfolio_router",
    "trader_router",
]
