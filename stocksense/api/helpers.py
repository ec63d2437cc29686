"""Shared helpers for the REST routers."""
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.models.portfolio import Portfolio
from stocksense.models.user_account import UserAccount
from stocksense.simulation import portfolio_engine
from stocksense.simulation.errors import SimulationError
from stocksense.simulation.market import market


def http_error(exc: SimulationError) -> HTTPException:
    """Translate a domain error into the HTTP status it carries."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))


async def current_portfolio(db: AsyncSession, user: UserAccount) -> Portfolio:
    """The user's portfolio, synced to the wall clock before use."""
    try:
        portfolio = await portfolio_engine.get_portfolio(db, user.id)
    except SimulationError as exc:
        raise http_error(exc)
    await portfolio_engine.refresh_portfolio(db, portfolio, market=market)
    return portfolio
