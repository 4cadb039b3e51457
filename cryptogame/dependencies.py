"""Shared FastAPI dependencies for process-wide pricing and trading state.

The resolver is created in the application lifespan; tests override
get_resolver instead.
"""

from fastapi import Request

from cryptogame.pricing import PriceResolver
from cryptogame.services.trader import UserLocks

# One registry per process: every request for a user must see the same lock
user_locks = UserLocks()


def get_resolver(request: Request) -> PriceResolver:
    return request.app.state.resolver


def get_user_locks() -> UserLocks:
    return user_locks
