"""In-memory market state shared by the API and the market loop.

A ``Market`` owns the yearly price cache and one reference board per active
simulated year.  Boards are built off to the side and swapped in with a
single assignment, so readers never see a half-built year.
"""
import logging
import random
from dataclasses import dataclass

from stocksense.simulation import price_engine
from stocksense.simulation.price_engine import Quote, YearlyPriceCache

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricingInput:
    """The slice of an instrument the price engine reads."""

    id: str
    kind: str
    base_price: float
    risk_category: str

    @classmethod
    def from_instrument(cls, instrument) -> "PricingInput":
        return cls(
            id=instrument.id,
            kind=instrument.kind,
            base_price=instrument.base_price,
            risk_category=instrument.risk_category,
        )


class Market:
    def __init__(self, rng: random.Random | None = None) -> None:
        self.cache = YearlyPriceCache()
        self.rng = rng or random.Random()
        self._catalog: dict[str, PricingInput] = {}
        # year -> {instrument_id: reference price}
        self._boards: dict[int, dict[str, float]] = {}

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def load_catalog(self, instruments) -> None:
        self._catalog = {i.id: PricingInput.from_instrument(i) for i in instruments}
        self._boards = {}
        log.info("Market catalog loaded (%d instruments)", len(self._catalog))

    @property
    def catalog(self) -> list[PricingInput]:
        return list(self._catalog.values())

    # ------------------------------------------------------------------
    # Reference prices
    # ------------------------------------------------------------------

    def reference_price(self, instrument, year: int) -> float:
        return price_engine.yearly_price(
            instrument.id,
            instrument.base_price,
            instrument.risk_category,
            year,
            cache=self.cache,
            kind=instrument.kind,
        )

    def reference_prices(self, instruments, year: int) -> dict[str, float]:
        return {i.id: self.reference_price(i, year) for i in instruments}

    def history(self, instrument, through_year: int) -> list[dict]:
        return price_engine.yearly_history(
            instrument.id,
            instrument.base_price,
            instrument.risk_category,
            through_year,
            cache=self.cache,
            kind=instrument.kind,
        )

    def publish_year(self, year: int) -> dict[str, float]:
        """Build the full board for *year* and swap it in."""
        board = self.reference_prices(self._catalog.values(), year)
        boards = dict(self._boards)
        boards[year] = board
        self._boards = boards
        log.debug("Published board for year %d (%d prices)", year, len(board))
        return board

    def board(self, year: int) -> dict[str, float]:
        board = self._boards.get(year)
        if board is None:
            board = self.publish_year(year)
        return board

    # ------------------------------------------------------------------
    # Ticker
    # ------------------------------------------------------------------

    def quote(self, instrument, year: int, reference: float | None = None) -> Quote:
        if reference is None:
            reference = self.reference_price(instrument, year)
        profile = price_engine.profile_for(instrument.risk_category, instrument.kind)
        display = price_engine.jittered_price(reference, profile.intraday_amplitude, self.rng)
        return price_engine.make_quote(instrument.id, instrument.base_price, reference, display)

    def tick(self, year: int) -> list[Quote]:
        """Fresh jittered quotes for the whole catalog at *year*."""
        board = self.board(year)
        return [
            self.quote(p, year, board.get(p.id))
            for p in self._catalog.values()
        ]

    def reset(self) -> None:
        self.cache.clear()
        self._boards = {}


# Module-level singleton used by the API, the lifespan and the market loop.
market = Market()
