"""REST API endpoints for buying and selling instruments."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.database import get_db
from stocksense.auth.deps import get_current_user
from stocksense.models.user_account import UserAccount
from stocksense.api.helpers import current_portfolio, http_error
from stocksense.simulation import portfolio_engine, trade_engine
from stocksense.simulation.errors import SimulationError
from stocksense.simulation.market import market

router = APIRouter(prefix="/api/trade", tags=["trade"])


class BuyStockRequest(BaseModel):
    instrument_id: str
    # Whole shares; fractional values are rejected by the trade engine.
    quantity: float


class BuyFundRequest(BaseModel):
    instrument_id: str
    amount: float


class SellRequest(BaseModel):
    instrument_id: str
    quantity: float


async def _execute(db: AsyncSession, user: UserAccount, trade, *args) -> dict:
    portfolio = await current_portfolio(db, user)
    # Keep the year sync (and a run closed by it) even if the trade is rejected.
    await db.commit()
    try:
        result = await trade(db, portfolio, *args, market=market)
    except SimulationError as exc:
        raise http_error(exc)
    metrics = await portfolio_engine.portfolio_metrics(db, portfolio, market)
    await portfolio_engine.record_history(db, portfolio, metrics)
    await db.commit()
    return result.as_dict()


@router.post("/buy-stock")
async def buy_stock(
    req: BuyStockRequest,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _execute(db, user, trade_engine.buy_stock, req.instrument_id, req.quantity)


@router.post("/buy-fund")
async def buy_fund(
    req: BuyFundRequest,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _execute(db, user, trade_engine.buy_fund, req.instrument_id, req.amount)


@router.post("/sell")
async def sell(
    req: SellRequest,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _execute(db, user, trade_engine.sell, req.instrument_id, req.quantity)
