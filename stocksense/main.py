from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from stocksense.config import settings
from stocksense.database import async_session, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    from stocksense.models.instrument import Instrument
    from stocksense.simulation.catalog import seed_catalog
    from stocksense.simulation.market import market
    from stocksense.simulation.market_loop import market_loop

    await init_db()
    async with async_session() as db:
        if settings.SEED_CATALOG:
            await seed_catalog(db)
            await db.commit()
        instruments = (await db.execute(select(Instrument))).scalars().all()
    market.load_catalog(instruments)
    await market_loop.start()
    yield
    await market_loop.stop()


def create_app() -> FastAPI:
    app = FastAPI(title="StockSense", version="0.1.0", lifespan=lifespan)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    from stocksense.api.auth import router as auth_router
    from stocksense.api.market import router as market_router
    from stocksense.api.portfolio import router as portfolio_router
    from stocksense.api.trade import router as trade_router

    app.include_router(auth_router)
    app.include_router(market_router)
    app.include_router(portfolio_router)
    app.include_router(trade_router)

    @app.get("/")
    async def root():
        return {"status": "ok", "app": "StockSense"}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        from stocksense.ws.handler import websocket_handler
        await websocket_handler(websocket)

    return app


app = create_app()
