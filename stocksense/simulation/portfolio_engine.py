"""Portfolio engine -- opening, year sync, valuation, history and reset.

The simulated year is derived from the wall clock on every read and written
back when it moves forward (write-on-read).  Reaching the final year closes
the run and stores a terminal report.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksense.config import get_settings
from stocksense.models.holding import Holding
from stocksense.models.instrument import Instrument
from stocksense.models.portfolio import Portfolio
from stocksense.models.portfolio_snapshot import PortfolioSnapshot
from stocksense.models.simulation_report import SimulationReport
from stocksense.models.transaction import Transaction
from stocksense.simulation import report_engine, year_clock
from stocksense.simulation.errors import NotAuthenticated, PortfolioNotFound
from stocksense.simulation.market import Market, market as default_market
from stocksense.simulation.valuation_engine import (
    PortfolioMetrics,
    Position,
    tracker_facts,
    valuate,
)

log = logging.getLogger(__name__)


@dataclass
class YearSync:
    portfolio: Portfolio
    previous_year: int
    year: int
    ended: bool = False  # the run closed during this sync
    report: dict | None = None

    @property
    def changed(self) -> bool:
        return self.year != self.previous_year


def _year_duration() -> timedelta:
    return timedelta(seconds=get_settings().YEAR_DURATION_SECONDS)


# ---------------------------------------------------------------------------
# Lookup / creation
# ---------------------------------------------------------------------------

async def open_portfolio(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> Portfolio:
    settings = get_settings()
    portfolio = Portfolio(
        user_id=user_id,
        cash_balance=settings.STARTING_CASH,
        simulated_year=1,
        year_started_at=now or year_clock.utcnow(),
    )
    db.add(portfolio)
    await db.flush()
    log.info("Opened portfolio %s for user %s", portfolio.id, user_id)
    return portfolio


async def get_portfolio(db: AsyncSession, user_id: int | None) -> Portfolio:
    if user_id is None:
        raise NotAuthenticated("Sign in to use the simulator.")
    portfolio = (
        await db.execute(select(Portfolio).where(Portfolio.user_id == user_id))
    ).scalar_one_or_none()
    if portfolio is None:
        raise PortfolioNotFound(user_id)
    return portfolio


async def list_open_portfolios(db: AsyncSession) -> list[Portfolio]:
    return list(
        (
            await db.execute(select(Portfolio).where(Portfolio.is_ended == False))  # noqa: E712
        ).scalars().all()
    )


# ---------------------------------------------------------------------------
# Simulated year
# ---------------------------------------------------------------------------

def sync_simulated_year(portfolio: Portfolio, now: datetime | None = None) -> YearSync:
    """Advance ``portfolio.simulated_year`` to the clock; never moves it back."""
    previous = portfolio.simulated_year
    if portfolio.is_ended:
        return YearSync(portfolio, previous, previous)

    current = year_clock.simulated_year(
        portfolio.year_started_at,
        now,
        max_years=get_settings().MAX_SIMULATION_YEARS,
        year_duration=_year_duration(),
    )
    if current > previous:
        portfolio.simulated_year = current
    return YearSync(portfolio, previous, portfolio.simulated_year)


def countdown(portfolio: Portfolio, now: datetime | None = None) -> dict:
    settings = get_settings()
    if portfolio.is_ended:
        remaining = timedelta(0)
    else:
        remaining = year_clock.time_until_next_year(
            portfolio.year_started_at,
            now,
            max_years=settings.MAX_SIMULATION_YEARS,
            year_duration=_year_duration(),
        )
    seconds = int(remaining.total_seconds())
    return {
        "seconds_until_next_year": seconds,
        "hours": seconds // 3600,
        "minutes": seconds % 3600 // 60,
        "seconds": seconds % 60,
    }


# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------

async def load_holdings(db: AsyncSession, portfolio_id: str) -> list[tuple[Holding, Instrument]]:
    rows = await db.execute(
        select(Holding, Instrument)
        .join(Instrument, Holding.instrument_id == Instrument.id)
        .where(Holding.portfolio_id == portfolio_id)
        .order_by(Instrument.symbol)
    )
    return [(h, i) for h, i in rows.all()]


async def portfolio_metrics(
    db: AsyncSession,
    portfolio: Portfolio,
    market: Market | None = None,
) -> PortfolioMetrics:
    market = market or default_market
    rows = await load_holdings(db, portfolio.id)
    positions = [Position.from_holding(h, i) for h, i in rows]
    prices = market.reference_prices([i for _, i in rows], portfolio.simulated_year)
    return valuate(positions, prices, portfolio.cash_balance, get_settings().STARTING_CASH)


async def portfolio_facts(
    db: AsyncSession,
    portfolio: Portfolio,
    market: Market | None = None,
) -> dict:
    metrics = await portfolio_metrics(db, portfolio, market)
    return tracker_facts(metrics, portfolio.simulated_year, get_settings().STARTING_CASH)


# ---------------------------------------------------------------------------
# History and reports
# ---------------------------------------------------------------------------

async def record_history(
    db: AsyncSession,
    portfolio: Portfolio,
    metrics: PortfolioMetrics,
) -> PortfolioSnapshot:
    """Upsert the snapshot for the portfolio's current year."""
    snapshot = (
        await db.execute(
            select(PortfolioSnapshot).where(
                PortfolioSnapshot.portfolio_id == portfolio.id,
                PortfolioSnapshot.year == portfolio.simulated_year,
            )
        )
    ).scalar_one_or_none()
    if snapshot is None:
        snapshot = PortfolioSnapshot(portfolio_id=portfolio.id, year=portfolio.simulated_year)
        db.add(snapshot)
    snapshot.total_value = round(metrics.total_value, 2)
    snapshot.invested = round(metrics.total_invested, 2)
    await db.flush()
    return snapshot


async def list_history(db: AsyncSession, portfolio_id: str) -> list[PortfolioSnapshot]:
    return list(
        (
            await db.execute(
                select(PortfolioSnapshot)
                .where(PortfolioSnapshot.portfolio_id == portfolio_id)
                .order_by(PortfolioSnapshot.year)
            )
        ).scalars().all()
    )


async def list_transactions(db: AsyncSession, portfolio_id: str) -> list[Transaction]:
    return list(
        (
            await db.execute(
                select(Transaction)
                .where(Transaction.portfolio_id == portfolio_id)
                .order_by(Transaction.id.desc())
            )
        ).scalars().all()
    )


async def latest_report(db: AsyncSession, portfolio_id: str) -> dict | None:
    report = (
        await db.execute(
            select(SimulationReport)
            .where(SimulationReport.portfolio_id == portfolio_id)
            .order_by(SimulationReport.id.desc())
            .limit(1)
        )
    ).scalar_one_or_none()
    if report is None:
        return None
    return json.loads(report.data)


async def end_run(
    db: AsyncSession,
    portfolio: Portfolio,
    metrics: PortfolioMetrics,
    now: datetime | None = None,
) -> dict:
    """Close the run and persist its terminal report."""
    report = report_engine.build_report(
        metrics, portfolio.simulated_year, get_settings().STARTING_CASH
    )
    db.add(SimulationReport(
        portfolio_id=portfolio.id,
        final_year=portfolio.simulated_year,
        total_value=report["total_value"],
        cash_balance=report["cash_balance"],
        data=json.dumps(report),
    ))
    portfolio.is_ended = True
    portfolio.ended_at = now or year_clock.utcnow()
    await db.flush()
    log.info(
        "Simulation ended for portfolio %s at year %d (value %.2f, grade %s)",
        portfolio.id, portfolio.simulated_year, report["total_value"], report["grade"],
    )
    return report


async def refresh_portfolio(
    db: AsyncSession,
    portfolio: Portfolio,
    now: datetime | None = None,
    market: Market | None = None,
) -> YearSync:
    """Sync the year, snapshot on change and close the run at the final year."""
    sync = sync_simulated_year(portfolio, now)
    if portfolio.is_ended:
        return sync

    final_year = sync.year >= get_settings().MAX_SIMULATION_YEARS
    if not (sync.changed or final_year):
        return sync

    if sync.changed:
        log.info(
            "Portfolio %s advanced from year %d to %d",
            portfolio.id, sync.previous_year, sync.year,
        )
    metrics = await portfolio_metrics(db, portfolio, market)
    await record_history(db, portfolio, metrics)
    if final_year:
        sync.report = await end_run(db, portfolio, metrics, now)
        sync.ended = True
    return sync


async def reset_portfolio(
    db: AsyncSession,
    portfolio: Portfolio,
    now: datetime | None = None,
    market: Market | None = None,
) -> Portfolio:
    """Start a fresh run: no holdings, starting cash, year 1, new anchor.

    The transaction log is kept as an audit trail.
    """
    market = market or default_market
    await db.execute(delete(Holding).where(Holding.portfolio_id == portfolio.id))
    await db.execute(delete(PortfolioSnapshot).where(PortfolioSnapshot.portfolio_id == portfolio.id))
    await db.execute(delete(SimulationReport).where(SimulationReport.portfolio_id == portfolio.id))

    portfolio.cash_balance = get_settings().STARTING_CASH
    portfolio.simulated_year = 1
    portfolio.year_started_at = now or year_clock.utcnow()
    portfolio.is_ended = False
    portfolio.ended_at = None
    await db.flush()

    market.reset()
    log.info("Reset portfolio %s", portfolio.id)
    return portfolio
