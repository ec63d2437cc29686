"""Trade engine -- buys and sells against a portfolio's cash and holdings.

Every operation validates first and mutates second, so a rejected trade
leaves the portfolio, its holdings and the transaction log untouched.
Trades fill at the yearly reference price for the portfolio's current
simulated year; the jittered ticker price is display-only.

The caller owns the session and commits once the trade returns.
"""
import logging
import math
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.models.holding import Holding
from stocksense.models.instrument import Instrument
from stocksense.models.portfolio import Portfolio
from stocksense.models.transaction import Transaction
from stocksense.simulation import constants as C
from stocksense.simulation.errors import (
    InstrumentNotFound,
    InsufficientFunds,
    InsufficientPosition,
    InvalidTrade,
    InvalidTradeQuantity,
    SimulationEnded,
)
from stocksense.simulation.market import Market, market as default_market

log = logging.getLogger(__name__)


@dataclass
class TradeResult:
    transaction: Transaction
    instrument: Instrument
    holding: Holding | None
    cash_balance: float

    def as_dict(self) -> dict:
        return {
            "transaction": self.transaction.as_dict(),
            "symbol": self.instrument.symbol,
            "holding": None if self.holding is None else {
                "quantity": self.holding.quantity,
                "average_price": self.holding.average_price,
            },
            "cash_balance": self.cash_balance,
        }


def _money(value: float) -> float:
    return round(value, 2)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def get_instrument(db: AsyncSession, instrument_id: str) -> Instrument:
    instrument = await db.get(Instrument, instrument_id)
    if instrument is None:
        raise InstrumentNotFound(instrument_id)
    return instrument


async def list_instruments(db: AsyncSession, kind: str | None = None) -> list[Instrument]:
    query = select(Instrument).order_by(Instrument.symbol)
    if kind is not None:
        query = query.where(Instrument.kind == kind)
    return list((await db.execute(query)).scalars().all())


async def get_holding(db: AsyncSession, portfolio_id: str, instrument_id: str) -> Holding | None:
    return (
        await db.execute(
            select(Holding).where(
                Holding.portfolio_id == portfolio_id,
                Holding.instrument_id == instrument_id,
            )
        )
    ).scalar_one_or_none()


async def get_holdings(db: AsyncSession, portfolio_id: str) -> list[Holding]:
    return list(
        (
            await db.execute(select(Holding).where(Holding.portfolio_id == portfolio_id))
        ).scalars().all()
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _ensure_open(portfolio: Portfolio) -> None:
    if portfolio.is_ended:
        raise SimulationEnded(portfolio.simulated_year)


def _ensure_positive(value: float, what: str) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise InvalidTradeQuantity(f"{what} must be greater than zero.")


def _whole_shares(quantity: float) -> int:
    _ensure_positive(quantity, "Quantity")
    if float(quantity) != int(quantity):
        raise InvalidTradeQuantity("Stocks trade in whole shares only.")
    return int(quantity)


# ---------------------------------------------------------------------------
# Mutation helpers
# ---------------------------------------------------------------------------

async def _apply_buy(
    db: AsyncSession,
    portfolio: Portfolio,
    instrument: Instrument,
    quantity: float,
    price: float,
    cost: float,
) -> TradeResult:
    holding = await get_holding(db, portfolio.id, instrument.id)
    if holding is None:
        holding = Holding(
            portfolio_id=portfolio.id,
            instrument_id=instrument.id,
            quantity=quantity,
            average_price=price,
        )
        db.add(holding)
    else:
        new_quantity = holding.quantity + quantity
        holding.average_price = (holding.average_price * holding.quantity + cost) / new_quantity
        holding.quantity = new_quantity

    portfolio.cash_balance = _money(portfolio.cash_balance - cost)
    txn = Transaction(
        portfolio_id=portfolio.id,
        instrument_id=instrument.id,
        transaction_type=C.TRADE_BUY,
        quantity=quantity,
        price_per_unit=price,
        total_amount=cost,
        simulated_year=portfolio.simulated_year,
    )
    db.add(txn)
    await db.flush()

    log.info(
        "BUY %g %s @ %.2f (portfolio %s, year %d)",
        quantity, instrument.symbol, price, portfolio.id, portfolio.simulated_year,
    )
    return TradeResult(txn, instrument, holding, portfolio.cash_balance)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def buy_stock(
    db: AsyncSession,
    portfolio: Portfolio,
    instrument_id: str,
    quantity: float,
    market: Market | None = None,
) -> TradeResult:
    """Buy whole shares of a stock at this year's reference price."""
    market = market or default_market
    _ensure_open(portfolio)
    shares = _whole_shares(quantity)
    instrument = await get_instrument(db, instrument_id)
    if instrument.kind != C.KIND_STOCK:
        raise InvalidTrade(f"{instrument.symbol} is not a stock; buy it as a fund.")

    price = market.reference_price(instrument, portfolio.simulated_year)
    cost = _money(price * shares)
    if cost > portfolio.cash_balance:
        raise InsufficientFunds(cost, portfolio.cash_balance)

    return await _apply_buy(db, portfolio, instrument, shares, price, cost)


async def buy_fund(
    db: AsyncSession,
    portfolio: Portfolio,
    instrument_id: str,
    amount: float,
    market: Market | None = None,
) -> TradeResult:
    """Invest a cash *amount* in a mutual or index fund for fractional units."""
    market = market or default_market
    _ensure_open(portfolio)
    _ensure_positive(amount, "Amount")
    instrument = await get_instrument(db, instrument_id)
    if instrument.kind not in C.FUND_KINDS:
        raise InvalidTrade(f"{instrument.symbol} is not a fund; buy it in shares.")

    cost = _money(amount)
    if cost <= 0:
        raise InvalidTradeQuantity("Amount must be at least 0.01.")
    if cost > portfolio.cash_balance:
        raise InsufficientFunds(cost, portfolio.cash_balance)

    nav = market.reference_price(instrument, portfolio.simulated_year)
    units = cost / nav
    return await _apply_buy(db, portfolio, instrument, units, nav, cost)


async def sell(
    db: AsyncSession,
    portfolio: Portfolio,
    instrument_id: str,
    quantity: float,
    market: Market | None = None,
) -> TradeResult:
    """Sell shares or fund units; the average cost of what remains is unchanged."""
    market = market or default_market
    _ensure_open(portfolio)
    instrument = await get_instrument(db, instrument_id)
    if instrument.kind == C.KIND_STOCK:
        quantity = _whole_shares(quantity)
    else:
        _ensure_positive(quantity, "Units")

    holding = await get_holding(db, portfolio.id, instrument.id)
    if holding is None:
        raise InsufficientPosition(instrument.symbol, quantity, 0.0)
    held = holding.quantity
    # Tolerance only absorbs rounding against an existing position
    if quantity > held + C.UNITS_EPSILON:
        raise InsufficientPosition(instrument.symbol, quantity, held)
    quantity = min(quantity, held)

    price = market.reference_price(instrument, portfolio.simulated_year)
    proceeds = _money(price * quantity)

    remaining = held - quantity
    if remaining < C.UNITS_EPSILON:
        await db.delete(holding)
        holding = None
    else:
        holding.quantity = remaining

    portfolio.cash_balance = _money(portfolio.cash_balance + proceeds)
    txn = Transaction(
        portfolio_id=portfolio.id,
        instrument_id=instrument.id,
        transaction_type=C.TRADE_SELL,
        quantity=quantity,
        price_per_unit=price,
        total_amount=proceeds,
        simulated_year=portfolio.simulated_year,
    )
    db.add(txn)
    await db.flush()

    log.info(
        "SELL %g %s @ %.2f (portfolio %s, year %d)",
        quantity, instrument.symbol, price, portfolio.id, portfolio.simulated_year,
    )
    return TradeResult(txn, instrument, holding, portfolio.cash_balance)
