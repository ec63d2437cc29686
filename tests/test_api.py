"""End-to-end tests for the market, portfolio and trade endpoints."""
from datetime import timedelta

import pytest
from sqlalchemy import select

from stocksense.models.portfolio import Portfolio
from stocksense.simulation import year_clock
from stocksense.simulation.market import market
from stocksense.simulation.market_loop import MarketLoop
from stocksense.ws.handler import SessionState, manager


# ── Helpers ──────────────────────────────────────────────────────────────────

class _FeedSocket:
    def __init__(self):
        self.sent: list[dict] = []

    async def send_json(self, message):
        self.sent.append(message)


async def _register(client, username="apiuser"):
    reg = await client.post("/api/auth/register", json={
        "username": username,
        "password": "pass123",
    })
    data = reg.json()
    return {"Authorization": f"Bearer {data['access_token']}"}, data["user_id"]


async def _age_portfolio(db_session, user_id, days):
    portfolio = (await db_session.execute(
        select(Portfolio).where(Portfolio.user_id == user_id)
    )).scalar_one()
    portfolio.year_started_at = year_clock.utcnow() - timedelta(days=days)
    await db_session.commit()


# ── Market ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_instruments(client, catalog):
    headers, _ = await _register(client)
    resp = await client.get("/api/market/instruments", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["year"] == 1
    assert len(data["instruments"]) == len(catalog)
    first = data["instruments"][0]
    assert first["yearly_price"] == first["base_price"]
    assert "display_price" in first


@pytest.mark.asyncio
async def test_list_instruments_by_kind(client, catalog):
    headers, _ = await _register(client)
    resp = await client.get("/api/market/instruments?kind=index_fund", headers=headers)
    kinds = {i["kind"] for i in resp.json()["instruments"]}
    assert kinds == {"index_fund"}
    assert len(resp.json()["instruments"]) == 5

    resp = await client.get("/api/market/instruments?kind=crypto", headers=headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_instrument_detail_with_history(client, db_session, catalog):
    headers, user_id = await _register(client)
    await _age_portfolio(db_session, user_id, days=3)
    tcs = catalog["TCS"]

    resp = await client.get(f"/api/market/instruments/{tcs.id}", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["year"] == 4
    assert [h["year"] for h in data["history"]] == [1, 2, 3, 4]
    assert data["history"][0]["price"] == tcs.base_price
    assert data["history"][-1]["price"] == data["yearly_price"]


@pytest.mark.asyncio
async def test_instrument_not_found(client, catalog):
    headers, _ = await _register(client)
    resp = await client.get("/api/market/instruments/nope", headers=headers)
    assert resp.status_code == 404


# ── Portfolio & trading ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_portfolio_overview(client, catalog):
    headers, _ = await _register(client)
    resp = await client.get("/api/portfolio", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["cash_balance"] == 100000.0
    assert data["simulated_year"] == 1
    assert data["is_ended"] is False
    assert data["metrics"]["risk_score"] == 20
    assert 0 < data["countdown"]["seconds_until_next_year"] <= 86400


@pytest.mark.asyncio
async def test_buy_and_sell_stock(client, catalog):
    headers, _ = await _register(client)
    infy = catalog["INFY"]

    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": infy.id, "quantity": 10,
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["cash_balance"] == 100000.0 - 10 * infy.base_price

    holdings = (await client.get("/api/portfolio/holdings", headers=headers)).json()
    assert len(holdings) == 1
    assert holdings[0]["symbol"] == "INFY"
    assert holdings[0]["quantity"] == 10

    resp = await client.post("/api/trade/sell", json={
        "instrument_id": infy.id, "quantity": 10,
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["holding"] is None
    assert resp.json()["cash_balance"] == 100000.0

    txns = (await client.get("/api/portfolio/transactions", headers=headers)).json()
    assert [t["type"] for t in txns] == ["SELL", "BUY"]


@pytest.mark.asyncio
async def test_buy_fund(client, catalog):
    headers, _ = await _register(client)
    fund = catalog["UTINIF"]
    resp = await client.post("/api/trade/buy-fund", json={
        "instrument_id": fund.id, "amount": 5000,
    }, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["holding"]["quantity"] == pytest.approx(5000 / fund.base_price)

    facts = (await client.get("/api/portfolio/facts", headers=headers)).json()
    assert facts["index_funds_owned"] == 1
    assert facts["holdings_count"] == 1


@pytest.mark.asyncio
async def test_trade_errors(client, catalog):
    headers, _ = await _register(client)
    maruti = catalog["MARUTI"]

    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": maruti.id, "quantity": 1000,
    }, headers=headers)
    assert resp.status_code == 400
    assert "Insufficient balance" in resp.json()["detail"]

    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": maruti.id, "quantity": 1.5,
    }, headers=headers)
    assert resp.status_code == 400

    resp = await client.post("/api/trade/sell", json={
        "instrument_id": maruti.id, "quantity": 1,
    }, headers=headers)
    assert resp.status_code == 400

    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": "missing", "quantity": 1,
    }, headers=headers)
    assert resp.status_code == 404

    portfolio = (await client.get("/api/portfolio", headers=headers)).json()
    assert portfolio["cash_balance"] == 100000.0


@pytest.mark.asyncio
async def test_history_snapshot(client, catalog):
    headers, _ = await _register(client)
    await client.get("/api/portfolio", headers=headers)
    history = (await client.get("/api/portfolio/history", headers=headers)).json()
    assert history == [{"year": 1, "total_value": 100000.0, "invested": 0.0}]


# ── End of run & reset ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_report_after_final_year(client, db_session, catalog):
    headers, user_id = await _register(client)

    resp = await client.get("/api/portfolio/report", headers=headers)
    assert resp.status_code == 404

    await _age_portfolio(db_session, user_id, days=25)

    data = (await client.get("/api/portfolio", headers=headers)).json()
    assert data["simulated_year"] == 20
    assert data["is_ended"] is True
    assert data["countdown"]["seconds_until_next_year"] == 0

    report = (await client.get("/api/portfolio/report", headers=headers)).json()
    assert report["final_year"] == 20
    assert report["grade"] == "C"

    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": catalog["TCS"].id, "quantity": 1,
    }, headers=headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_reset(client, db_session, catalog):
    headers, user_id = await _register(client)
    await client.post("/api/trade/buy-stock", json={
        "instrument_id": catalog["ITC"].id, "quantity": 20,
    }, headers=headers)
    await _age_portfolio(db_session, user_id, days=25)
    await client.get("/api/portfolio", headers=headers)

    resp = await client.post("/api/portfolio/reset", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["cash_balance"] == 100000.0
    assert data["simulated_year"] == 1
    assert data["is_ended"] is False

    assert (await client.get("/api/portfolio/holdings", headers=headers)).json() == []
    assert (await client.get("/api/portfolio/report", headers=headers)).status_code == 404
    resp = await client.post("/api/trade/buy-stock", json={
        "instrument_id": catalog["ITC"].id, "quantity": 1,
    }, headers=headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_reset_moves_live_feed_to_year_one(client, db_session, session_factory, catalog):
    headers, user_id = await _register(client)
    await _age_portfolio(db_session, user_id, days=25)
    data = (await client.get("/api/portfolio", headers=headers)).json()
    assert data["is_ended"] is True

    socket = _FeedSocket()
    manager.active_connections[user_id] = socket
    manager.session_states[user_id] = SessionState(user_id, data["id"], 20, is_ended=True)

    await client.post("/api/portfolio/reset", headers=headers)

    state = manager.get_state(user_id)
    assert state.year == 1
    assert state.is_ended is False
    assert socket.sent[0] == {"type": "simulation_reset", "year": 1}

    loop = MarketLoop(market=market, tick_interval=10.0, year_check_every=1,
                      session_factory=session_factory)
    await loop.year_tick()
    assert await loop.jitter_tick() == 1
    updates = [m for m in socket.sent if m["type"] == "price_update"]
    assert updates[-1]["year"] == 1
