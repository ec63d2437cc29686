"""REST API endpoints for the instrument catalog and quotes."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.database import get_db
from stocksense.auth.deps import get_current_user
from stocksense.models.user_account import UserAccount
from stocksense.api.helpers import current_portfolio, http_error
from stocksense.simulation import constants as C
from stocksense.simulation import trade_engine
from stocksense.simulation.errors import SimulationError
from stocksense.simulation.market import market

router = APIRouter(prefix="/api/market", tags=["market"])


def _quoted(instrument, year: int) -> dict:
    data = instrument.as_dict()
    data.update(market.quote(instrument, year).as_dict())
    return data


@router.get("/instruments")
async def list_instruments(
    kind: str | None = None,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """All instruments (optionally of one *kind*) quoted at the caller's year."""
    if kind is not None and kind not in C.INSTRUMENT_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown instrument kind: {kind}")
    portfolio = await current_portfolio(db, user)
    instruments = await trade_engine.list_instruments(db, kind)
    return {
        "year": portfolio.simulated_year,
        "instruments": [_quoted(i, portfolio.simulated_year) for i in instruments],
    }


@router.get("/instruments/{instrument_id}")
async def get_instrument(
    instrument_id: str,
    user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """One instrument's quote plus its reference price for every year so far."""
    portfolio = await current_portfolio(db, user)
    try:
        instrument = await trade_engine.get_instrument(db, instrument_id)
    except SimulationError as exc:
        raise http_error(exc)
    data = _quoted(instrument, portfolio.simulated_year)
    data["year"] = portfolio.simulated_year
    data["history"] = market.history(instrument, portfolio.simulated_year)
    return data
