import pytest
from sqlalchemy import select

from stocksense.auth.jwt import create_access_token, user_id_from_token
from stocksense.models.portfolio import Portfolio


async def _register(client, username="testuser", password="testpass123"):
    return await client.post("/api/auth/register", json={
        "username": username,
        "password": password,
    })


@pytest.mark.asyncio
async def test_register(client):
    resp = await _register(client)
    assert resp.status_code == 200
    data = resp.json()
    assert data["username"] == "testuser"
    assert data["token_type"] == "bearer"
    assert user_id_from_token(data["access_token"]) == data["user_id"]


@pytest.mark.asyncio
async def test_register_opens_portfolio(client, db_session):
    user_id = (await _register(client, "investor")).json()["user_id"]
    portfolio = (await db_session.execute(
        select(Portfolio).where(Portfolio.user_id == user_id)
    )).scalar_one()
    assert portfolio.cash_balance == 100000.0
    assert portfolio.simulated_year == 1
    assert portfolio.is_ended is False


@pytest.mark.asyncio
async def test_register_duplicate_username(client):
    await _register(client)
    resp = await _register(client, password="another")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_register_rejects_empty_username(client):
    resp = await _register(client, username="")
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("password, status", [("testpass123", 200), ("wrongpass", 401)])
async def test_login(client, password, status):
    await _register(client)
    resp = await client.post("/api/auth/login", json={
        "username": "testuser",
        "password": password,
    })
    assert resp.status_code == status


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    resp = await client.post("/api/auth/login", json={
        "username": "ghost",
        "password": "whatever",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_token(client):
    assert (await client.get("/api/portfolio")).status_code == 401
    resp = await client.get("/api/portfolio", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_user(client):
    token = create_access_token(12345)
    resp = await client.get("/api/portfolio", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_garbage_tokens_have_no_user():
    assert user_id_from_token(None) is None
    assert user_id_from_token("") is None
    assert user_id_from_token("abc.def.ghi") is None


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "app": "StockSense"}
