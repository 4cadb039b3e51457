"""Tests for admin API endpoints."""

from decimal import Decimal

import pytest


@pytest.mark.asyncio
async def test_create_user(test_client):
    """Test creating a player with the default starting cash."""
    response = await test_client.post("/admin/users", json={"username": "alice"})

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "alice"
    assert Decimal(data["cash_balance"]) == Decimal("10000")
    assert data["api_key"].startswith("sk_")
    assert data["user_id"]


@pytest.mark.asyncio
async def test_create_user_with_initial_cash(test_client):
    """Test that initial_cash overrides the default balance."""
    response = await test_client.post(
        "/admin/users",
        json={"username": "whale", "initial_cash": "250000"},
    )

    assert response.status_code == 201
    assert Decimal(response.json()["cash_balance"]) == Decimal("250000")


@pytest.mark.asyncio
async def test_create_user_duplicate(test_client):
    """Test that a duplicate username returns 409."""
    await test_client.post("/admin/users", json={"username": "dupe"})

    response = await test_client.post("/admin/users", json={"username": "dupe"})

    assert response.status_code == 409
    assert "already exists" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_user_negative_cash(test_client):
    """Test that negative initial cash returns 422."""
    response = await test_client.post(
        "/admin/users",
        json={"username": "debtor", "initial_cash": "-1"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_user_invalid_username(test_client):
    """Test that usernames that are too short or contain spaces return 422."""
    assert (await test_client.post("/admin/users", json={"username": "ab"})).status_code == 422
    assert (await test_client.post("/admin/users", json={"username": "a b c"})).status_code == 422


@pytest.mark.asyncio
async def test_list_users(test_client):
    """Test listing players."""
    await test_client.post("/admin/users", json={"username": "first"})
    await test_client.post("/admin/users", json={"username": "second"})

    response = await test_client.get("/admin/users")

    assert response.status_code == 200
    data = response.json()
    assert {u["username"] for u in data} == {"first", "second"}
    assert all(u["rank"] is None for u in data)
    assert all("api_key" not in u for u in data)


@pytest.mark.asyncio
async def test_created_api_key_authenticates(test_client):
    """Test that the returned API key works on player endpoints."""
    created = (await test_client.post("/admin/users", json={"username": "keyed"})).json()

    response = await test_client.get(
        "/api/v1/account", headers={"X-API-Key": created["api_key"]}
    )

    assert response.status_code == 200
    assert response.json()["user_id"] == created["user_id"]
