import json
import logging

from fastapi import WebSocket, WebSocketDisconnect

from stocksense.auth.jwt import user_id_from_token
from stocksense.database import async_session
from stocksense.simulation import portfolio_engine
from stocksense.simulation.errors import SimulationError
from stocksense.simulation.market import market
from stocksense.ws import protocol as P

log = logging.getLogger(__name__)


class SessionState:
    """Per-WebSocket state: whose portfolio and which simulated year it shows."""

    def __init__(self, user_id: int, portfolio_id: str, year: int, is_ended: bool = False):
        self.user_id = user_id
        self.portfolio_id = portfolio_id
        self.year = year
        self.is_ended = is_ended


class ConnectionManager:
    """Manages active WebSocket connections, one per user."""

    def __init__(self):
        self.active_connections: dict[int, WebSocket] = {}
        self.session_states: dict[int, SessionState] = {}

    async def connect(self, websocket: WebSocket, user_id: int, state: SessionState):
        await websocket.accept()
        previous = self.active_connections.get(user_id)
        if previous is not None and previous is not websocket:
            # A newer tab replaces the old socket.
            try:
                await previous.close(code=4000, reason="Replaced by a newer connection")
            except Exception:
                log.debug("Failed to close replaced socket for user %s", user_id)
        self.active_connections[user_id] = websocket
        self.session_states[user_id] = state

    def disconnect(self, user_id: int, websocket: WebSocket | None = None):
        if websocket is not None and self.active_connections.get(user_id) is not websocket:
            return
        self.active_connections.pop(user_id, None)
        self.session_states.pop(user_id, None)

    async def send_message(self, user_id: int, message: dict):
        ws = self.active_connections.get(user_id)
        if ws:
            await ws.send_json(message)

    def get_state(self, user_id: int) -> SessionState | None:
        return self.session_states.get(user_id)


manager = ConnectionManager()


def price_update_message(year: int) -> dict:
    return {
        "type": P.MSG_PRICE_UPDATE,
        "year": year,
        "quotes": [q.as_dict() for q in market.tick(year)],
    }


async def announce_reset(user_id: int, year: int) -> None:
    """Point a connected user's feed at the restarted run."""
    state = manager.get_state(user_id)
    if state is None:
        return
    state.year = year
    state.is_ended = False
    try:
        await manager.send_message(user_id, {"type": P.MSG_SIMULATION_RESET, "year": year})
        await manager.send_message(user_id, price_update_message(year))
    except Exception:
        log.debug("Failed to send simulation_reset to user %s", user_id)


async def websocket_handler(websocket: WebSocket):
    # ---- authenticate ----
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Missing token")
        return

    user_id = user_id_from_token(token)
    if user_id is None:
        await websocket.close(code=4001, reason="Invalid token")
        return

    # ---- look up the portfolio and its current year ----
    async with async_session() as db:
        try:
            portfolio = await portfolio_engine.get_portfolio(db, user_id)
        except SimulationError:
            await websocket.close(code=4003, reason="No portfolio for this user")
            return
        sync = await portfolio_engine.refresh_portfolio(db, portfolio, market=market)
        await db.commit()

    state = SessionState(
        user_id=user_id,
        portfolio_id=portfolio.id,
        year=sync.year,
        is_ended=portfolio.is_ended,
    )
    await manager.connect(websocket, user_id, state)
    await websocket.send_json({
        "type": P.MSG_CONNECTED,
        "portfolio_id": state.portfolio_id,
        "year": state.year,
        "is_ended": state.is_ended,
    })

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"type": P.MSG_ERROR, "detail": "Invalid JSON"})
                continue
            msg_type = message.get("type") if isinstance(message, dict) else None

            if msg_type == P.MSG_HEARTBEAT:
                await websocket.send_json({"type": P.MSG_HEARTBEAT_ACK})

            elif msg_type == P.MSG_SUBSCRIBE:
                await websocket.send_json(price_update_message(state.year))

            else:
                await websocket.send_json(
                    {
                        "type": P.MSG_ERROR,
                        "detail": f"Unknown message type: {msg_type}",
                    }
                )

    except WebSocketDisconnect:
        manager.disconnect(user_id, websocket)
