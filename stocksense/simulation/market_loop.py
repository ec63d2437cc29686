"""Async market loop -- drives the live ticker and the simulated calendar.

The loop is started/stopped by the FastAPI lifespan handler and runs as a
background ``asyncio.Task``.  Every tick (10 s by default) it:

1. Every ``year_check_every`` ticks (60 s by default) runs ``year_tick()``:
   syncs each open portfolio to the wall clock, snapshots portfolios whose
   year moved, closes runs that reached the final year and publishes fresh
   reference boards for the years now in play.
2. Runs ``jitter_tick()``: sends each connected user a ``price_update`` with
   jittered quotes around the reference board for their year.

Messages are broadcast after the DB commit.  Both tick functions can be
called directly with a fixed clock.
"""
import asyncio
import logging
from datetime import datetime

from stocksense.config import get_settings
from stocksense.database import async_session
from stocksense.simulation import portfolio_engine
from stocksense.simulation.market import Market, market as default_market

log = logging.getLogger(__name__)


class MarketLoop:
    """Singleton loop that ticks prices and advances simulated years."""

    def __init__(
        self,
        market: Market | None = None,
        tick_interval: float | None = None,
        year_check_every: int | None = None,
        session_factory=None,
    ) -> None:
        settings = get_settings()
        self.market = market or default_market
        self.tick_interval = tick_interval or settings.INTRADAY_TICK_SECONDS
        if year_check_every is None:
            year_check_every = round(settings.YEAR_CHECK_SECONDS / self.tick_interval)
        self.year_check_every = max(1, year_check_every)
        self.session_factory = session_factory or async_session
        self._running: bool = False
        self._task: asyncio.Task | None = None
        self._tick_count: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background tick loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        log.info(
            "Market loop started (tick %.1fs, year check every %d ticks)",
            self.tick_interval, self.year_check_every,
        )

    async def stop(self) -> None:
        """Cancel the background tick loop and wait for it to finish."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("Market loop stopped")

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def _loop(self) -> None:
        """Run until ``_running`` is set to False or the task is cancelled."""
        while self._running:
            await asyncio.sleep(self.tick_interval)
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("Unhandled error in market loop tick")

    async def _tick(self) -> None:
        self._tick_count += 1
        if self._tick_count % self.year_check_every == 0:
            await self.year_tick()
        await self.jitter_tick()

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def jitter_tick(self) -> int:
        """Send one ``price_update`` per connected user; returns the number sent."""
        from stocksense.ws import protocol as P
        from stocksense.ws.handler import manager

        # One set of quotes per year so users in the same year see the same tick.
        quotes_by_year: dict[int, list[dict]] = {}
        sent = 0
        for user_id, state in list(manager.session_states.items()):
            quotes = quotes_by_year.get(state.year)
            if quotes is None:
                quotes = [q.as_dict() for q in self.market.tick(state.year)]
                quotes_by_year[state.year] = quotes
            try:
                await manager.send_message(
                    user_id,
                    {"type": P.MSG_PRICE_UPDATE, "year": state.year, "quotes": quotes},
                )
                sent += 1
            except Exception:
                log.debug("Failed to send price_update to user %s", user_id)
        return sent

    async def year_tick(self, now: datetime | None = None) -> list[dict]:
        """Advance every open run to *now*; returns the messages broadcast."""
        from stocksense.ws import protocol as P
        from stocksense.ws.handler import manager

        # Accumulate all messages to broadcast *after* the DB commit.
        messages: list[tuple[int, dict]] = []
        active_years: set[int] = set()

        async with self.session_factory() as db:
            portfolios = await portfolio_engine.list_open_portfolios(db)
            for portfolio in portfolios:
                sync = await portfolio_engine.refresh_portfolio(
                    db, portfolio, now=now, market=self.market
                )
                active_years.add(sync.year)
                if sync.changed:
                    messages.append((portfolio.user_id, {
                        "type": P.MSG_YEAR_CHANGED,
                        "previous_year": sync.previous_year,
                        "year": sync.year,
                    }))
                if sync.ended:
                    messages.append((portfolio.user_id, {
                        "type": P.MSG_SIMULATION_ENDED,
                        "final_year": sync.year,
                        "report": sync.report,
                    }))
            await db.commit()

        for year in sorted(active_years):
            self.market.publish_year(year)

        # The commit is already persisted so no DB connection is held
        # while awaiting WebSocket sends.
        for user_id, msg in messages:
            state = manager.get_state(user_id)
            if state is not None:
                if msg["type"] == P.MSG_YEAR_CHANGED:
                    state.year = msg["year"]
                elif msg["type"] == P.MSG_SIMULATION_ENDED:
                    state.is_ended = True
            try:
                await manager.send_message(user_id, msg)
            except Exception:
                log.debug("Failed to send %s to user %s", msg["type"], user_id)

        if messages:
            log.info("Year check: %d message(s) across %d open run(s)", len(messages), len(portfolios))
        return [msg for _, msg in messages]


# Module-level singleton used by the lifespan handler.
market_loop = MarketLoop()
