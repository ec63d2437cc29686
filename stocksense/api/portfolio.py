"""REST API endpoints for the caller's portfolio and simulation run."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.database import get_db
from stocksense.auth.deps import get_current_user
from stocksense.config import get_settings
from stocksense.models.user_account import UserAccount
from stocksense.api.helpers import current_portfolio
from stocksense.simulation import portfolio_engine
from stocksense.simulation.market import market
from stocksense.ws.handler import announce_reset

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


def _portfolio_dict(portfolio) -> dict:
    return {
        "id": portfolio.id,
        "cash_balance": portfolio.cash_balance,
        "simulated_year": portfolio.simulated_year,
        "max_years": get_settings().MAX_SIMULATION_YEARS,
        "year_started_at": portfolio.year_started_at.isoformat(),
        "is_ended": portfolio.is_ended,
        "ended_at": portfolio.ended_at.isoformat() if portfolio.ended_at else None,
    }


@router.get("")
async def get_portfolio(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Portfolio state, countdown to the next year and valuation metrics."""
    portfolio = await current_portfolio(db, user)
    metrics = await portfolio_engine.portfolio_metrics(db, portfolio, market)
    await portfolio_engine.record_history(db, portfolio, metrics)
    data = _portfolio_dict(portfolio)
    data["countdown"] = portfolio_engine.countdown(portfolio)
    data["metrics"] = metrics.as_dict()
    return data


@router.get("/holdings")
async def get_holdings(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    portfolio = await current_portfolio(db, user)
    metrics = await portfolio_engine.portfolio_metrics(db, portfolio, market)
    return [p.as_dict() for p in metrics.positions]


@router.get("/transactions")
async def get_transactions(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Executed trades, newest first."""
    portfolio = await current_portfolio(db, user)
    transactions = await portfolio_engine.list_transactions(db, portfolio.id)
    return [t.as_dict() for t in transactions]


@router.get("/history")
async def get_history(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """One value snapshot per simulated year, oldest first."""
    portfolio = await current_portfolio(db, user)
    snapshots = await portfolio_engine.list_history(db, portfolio.id)
    return [s.as_dict() for s in snapshots]


@router.get("/facts")
async def get_facts(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    portfolio = await current_portfolio(db, user)
    return await portfolio_engine.portfolio_facts(db, portfolio, market)


@router.get("/report")
async def get_report(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    portfolio = await current_portfolio(db, user)
    report = await portfolio_engine.latest_report(db, portfolio.id)
    if report is None:
        raise HTTPException(status_code=404, detail="The simulation has not ended yet")
    return report


@router.post("/reset")
async def reset_portfolio(
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Restart the run from year 1 with the starting cash."""
    portfolio = await current_portfolio(db, user)
    await portfolio_engine.reset_portfolio(db, portfolio, market=market)
    await db.commit()
    await announce_reset(user.id, portfolio.simulated_year)
    return _portfolio_dict(portfolio)
