#!/usr/bin/env python3
"""
Management script for the crypto trading game.

Usage (via API):
    python manage.py users load [-f data/users.json] [--base-url http://localhost:8000]
    python manage.py users show [--base-url http://localhost:8000]

Usage (direct DB / upstream access):
    python manage.py db init
    python manage.py db clear
    python manage.py db status
    python manage.py leaderboard recompute
    python manage.py quote bitcoin
"""

import asyncio
import json
import logging
from pathlib import Path

import click
import httpx
from sqlalchemy import func, select

from cryptogame.database import AsyncSessionLocal, engine, Base
from cryptogame.models import Position, TradeRecord, User
from cryptogame.pricing import CoinloreClient, PriceResolver
from cryptogame.services.leaderboard import SqlStandingStore, recompute_all


DEFAULT_BASE_URL = "http://localhost:8000"


# ============================================================================
# Direct database operations (internal)
# ============================================================================


async def _init_db():
    """Initialize the database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _clear_db():
    """Drop and recreate all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _count_records():
    """Count records in each table."""
    async with AsyncSessionLocal() as session:
        counts = {}
        for model, name in [
            (User, "users"),
            (Position, "positions"),
            (TradeRecord, "trades"),
        ]:
            counts[name] = await session.scalar(select(func.count()).select_from(model))
        return counts


async def _recompute_leaderboard():
    """Revalue and rerank every player against live prices."""
    await _init_db()
    async with CoinloreClient() as client:
        return await recompute_all(SqlStandingStore(AsyncSessionLocal), PriceResolver(client))


async def _resolve_quote(asset_id: str):
    async with CoinloreClient() as client:
        return await PriceResolver(client).resolve(asset_id)


# ============================================================================
# API operations
# ============================================================================


def _api_load_users(filepath: Path, base_url: str):
    """Create players via API.

    Returns the counts and the new API keys, which are only shown once.
    """
    with open(filepath) as f:
        users_data = json.load(f)

    loaded = 0
    skipped = 0
    errors = 0
    keys = {}

    with httpx.Client(base_url=base_url, timeout=30) as client:
        for data in users_data:
            response = client.post("/admin/users", json=data)

            if response.status_code == 201:
                loaded += 1
                keys[data["username"]] = response.json()["api_key"]
                click.echo(f"  Created {data['username']}")
            elif response.status_code == 409:
                skipped += 1
                click.echo(f"  Skipped {data['username']} (already exists)")
            else:
                errors += 1
                error_detail = response.json().get("detail", response.text)
                click.echo(f"  Error {data['username']}: {error_detail}", err=True)

    return loaded, skipped, errors, keys


def _api_show_users(base_url: str):
    """Get players via API."""
    with httpx.Client(base_url=base_url, timeout=30) as client:
        response = client.get("/admin/users")
        if response.status_code == 404:
            raise click.ClickException(
                f"Endpoint not found. Is the game API running at {base_url}?"
            )
        response.raise_for_status()
        return response.json()


# ============================================================================
# CLI: Main group
# ============================================================================


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose):
    """Crypto trading game management commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# CLI: users (via API)
# ============================================================================


@cli.group()
def users():
    """Manage players (via API)."""
    pass


@users.command("load")
@click.option(
    "--file", "-f",
    default="data/users.json",
    type=click.Path(exists=True),
    help="JSON file with player data",
)
@click.option(
    "--base-url", "-u",
    default=DEFAULT_BASE_URL,
    help=f"API base URL (default: {DEFAULT_BASE_URL})",
)
def users_load(file, base_url):
    """Create players from a JSON file via API."""
    click.echo(f"Loading players from {file} via {base_url}...")

    try:
        loaded, skipped, errors, keys = _api_load_users(Path(file), base_url)
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo("Is the server running? Start it with: uvicorn cryptogame.main:app", err=True)
        raise SystemExit(1)

    click.echo(f"\nDone: {loaded} loaded, {skipped} skipped, {errors} errors")
    if keys:
        click.echo("\nAPI keys (store them now, they cannot be retrieved later):")
        for username, api_key in keys.items():
            click.echo(f"  {username:<20} {api_key}")


@users.command("show")
@click.option(
    "--base-url", "-u",
    default=DEFAULT_BASE_URL,
    help=f"API base URL (default: {DEFAULT_BASE_URL})",
)
def users_show(base_url):
    """Show all players via API."""
    try:
        users_list = _api_show_users(base_url)
    except httpx.ConnectError:
        click.echo(f"\nError: Could not connect to {base_url}", err=True)
        click.echo("Is the server running? Start it with: uvicorn cryptogame.main:app", err=True)
        raise SystemExit(1)

    if not users_list:
        click.echo("No players found.")
        return

    click.echo(f"\n{'Username':<20} {'Cash':>15} {'Rank':>6}")
    click.echo("-" * 43)
    for u in users_list:
        rank = u["rank"] if u["rank"] is not None else "-"
        click.echo(f"{u['username']:<20} {float(u['cash_balance']):>15,.2f} {rank:>6}")
    click.echo(f"\nTotal: {len(users_list)} players")


# ============================================================================
# CLI: db (direct database access)
# ============================================================================


@cli.group()
def db():
    """Direct database management (bypasses API)."""
    pass


@db.command("init")
def db_init():
    """Create tables that do not exist yet."""
    asyncio.run(_init_db())
    click.echo("Database initialized.")


@db.command("clear")
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def db_clear():
    """Clear all data from the database (destructive!)."""
    click.echo("Clearing database...")
    asyncio.run(_clear_db())
    click.echo("Database cleared and tables recreated.")


@db.command("status")
def db_status():
    """Show database status and record counts."""

    async def run():
        await _init_db()
        return await _count_records()

    counts = asyncio.run(run())

    click.echo("\nDatabase Status:")
    click.echo("-" * 30)
    for table, count in counts.items():
        click.echo(f"  {table:<15} {count:>10,}")
    click.echo("-" * 30)
    click.echo(f"  {'Total':<15} {sum(counts.values()):>10,}")


# ============================================================================
# CLI: leaderboard and prices (direct access)
# ============================================================================


@cli.group()
def leaderboard():
    """Leaderboard maintenance."""
    pass


@leaderboard.command("recompute")
def leaderboard_recompute():
    """Revalue every player at current prices and rewrite the ranks."""
    standings = asyncio.run(_recompute_leaderboard())

    if not standings:
        click.echo("No players found.")
        return

    click.echo(f"\n{'Rank':>4}  {'Username':<20} {'Total Value':>15} {'Profit %':>10}")
    click.echo("-" * 53)
    for s in standings:
        click.echo(
            f"{s.rank:>4}  {s.username:<20} {float(s.total_value):>15,.2f} "
            f"{float(s.profit_percent):>9.2f}%"
        )


@cli.command("quote")
@click.argument("asset_id")
def quote(asset_id):
    """Resolve the current price of ASSET_ID through the fallback chain."""
    result = asyncio.run(_resolve_quote(asset_id))

    click.echo(f"{result.name} ({result.symbol}): {result.price} USD")
    click.echo(f"Source: {result.source.value}")
    if not result.is_usable_for_trade:
        click.echo("No price available; trades in this asset would be rejected.", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
