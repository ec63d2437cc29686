"""Deterministic price simulation -- yearly reference prices and intraday jitter.

Every instrument follows a reproducible yearly path derived only from its id,
its immutable ``base_price`` and its volatility profile:

1. ``base_seed()`` turns the instrument id into an integer.
2. For each simulated year ``y`` before the target year, ``seeded_random()``
   rolls a value in [0, 1) from ``base_seed + y``.
3. The roll is mapped onto the profile's annual return range plus an
   asymmetric market bias, compounded, and floored at a fraction of base.

The yearly reference price is cached per ``(instrument_id, year)`` in a
``YearlyPriceCache``.  Displayed prices add small non-deterministic noise
around that reference on every tick; the noisy value is never fed back into
the walk.
"""
import logging
import math
import random
import zlib
from dataclasses import asdict, dataclass

from stocksense.simulation import constants as C

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seeds
# ---------------------------------------------------------------------------


def seeded_random(seed: int) -> float:
    """Pure pseudo-random value in [0, 1) for *seed*."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def base_seed(instrument_id: str) -> int:
    """Integer seed from the first 8 hex digits of *instrument_id*.

    Ids that are not hex (hand-written catalog keys, test fixtures) fall back
    to a CRC32 of the whole id so every instrument still gets a stable seed.
    """
    digits = str(instrument_id).replace("-", "")[:8]
    try:
        return int(digits, 16)
    except ValueError:
        return zlib.crc32(str(instrument_id).encode("utf-8"))


# ---------------------------------------------------------------------------
# Volatility profiles
# ---------------------------------------------------------------------------


def profile_for(risk_category: str | None, kind: str | None = None) -> C.VolatilityProfile:
    """Look up the profile for *risk_category*, falling back per kind."""
    profile = C.VOLATILITY_PROFILES.get(risk_category or "")
    if profile is not None:
        return profile
    if kind in C.FUND_KINDS:
        return C.VOLATILITY_PROFILES[C.DEFAULT_FUND_CATEGORY]
    return C.VOLATILITY_PROFILES[C.DEFAULT_STOCK_CATEGORY]


def annual_return(rand: float, profile: C.VolatilityProfile) -> float:
    spread = profile.max_annual_return - profile.min_annual_return
    bias = profile.market_bias * (1 if rand > profile.bias_threshold else -0.5)
    return profile.min_annual_return + rand * spread + bias


# ---------------------------------------------------------------------------
# Yearly reference price
# ---------------------------------------------------------------------------


class YearlyPriceCache:
    """``(instrument_id, year) -> price`` memo, append-only until ``clear()``.

    Values are deterministic, so a second write for the same key is ignored
    and the first committed value is returned.
    """

    def __init__(self) -> None:
        self._prices: dict[tuple[str, int], float] = {}

    def get(self, instrument_id: str, year: int) -> float | None:
        return self._prices.get((str(instrument_id), year))

    def put(self, instrument_id: str, year: int, price: float) -> float:
        return self._prices.setdefault((str(instrument_id), year), price)

    def clear(self) -> None:
        size = len(self._prices)
        self._prices.clear()
        log.info("Yearly price cache cleared (%d entries)", size)

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, key: tuple[str, int]) -> bool:
        instrument_id, year = key
        return (str(instrument_id), year) in self._prices


def walk_price(
    instrument_id: str,
    base_price: float,
    profile: C.VolatilityProfile,
    target_year: int,
) -> float:
    """Compound seeded annual returns from year 1 up to *target_year*."""
    if target_year <= 1:
        return base_price

    floor = base_price * profile.floor_fraction
    seed = base_seed(instrument_id)
    price = base_price
    for year in range(1, target_year):
        rand = seeded_random(seed + year)
        price = max(price * (1 + annual_return(rand, profile)), floor)

    # Round once at the end; never round below the floor.
    final = round(price, 2)
    if final < floor:
        final = math.ceil(floor * 100) / 100
    return final


def yearly_price(
    instrument_id: str,
    base_price: float,
    risk_category: str | None,
    target_year: int,
    cache: YearlyPriceCache | None = None,
    kind: str | None = None,
) -> float:
    """Stable reference price of an instrument at *target_year*.

    Identical arguments always give the identical value; with a *cache* the
    walk runs at most once per ``(instrument_id, target_year)``.
    """
    if cache is not None:
        cached = cache.get(instrument_id, target_year)
        if cached is not None:
            return cached

    price = walk_price(instrument_id, base_price, profile_for(risk_category, kind), target_year)
    if cache is None:
        return price
    return cache.put(instrument_id, target_year, price)


def yearly_history(
    instrument_id: str,
    base_price: float,
    risk_category: str | None,
    through_year: int,
    cache: YearlyPriceCache | None = None,
    kind: str | None = None,
) -> list[dict]:
    """Reference prices for years 1..*through_year*, for price charts."""
    return [
        {
            "year": year,
            "price": yearly_price(instrument_id, base_price, risk_category, year, cache, kind),
        }
        for year in range(1, max(through_year, 1) + 1)
    ]


# ---------------------------------------------------------------------------
# Intraday jitter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Quote:
    """What a ticker shows for one instrument on one tick."""

    instrument_id: str
    base_price: float
    yearly_price: float
    display_price: float
    change: float
    change_percent: float

    def as_dict(self) -> dict:
        return asdict(self)


def jittered_price(
    yearly_reference_price: float,
    amplitude: float,
    rng: random.Random | None = None,
) -> float:
    """Reference price scaled by a zero-mean factor in [1 - amplitude, 1 + amplitude]."""
    roll = (rng or random).random()
    factor = 1 + (roll - 0.5) * 2 * amplitude
    return round(yearly_reference_price * factor, 2)


def make_quote(
    instrument_id: str,
    base_price: float,
    yearly_reference_price: float,
    display_price: float,
) -> Quote:
    change = display_price - base_price
    change_percent = change / base_price * 100 if base_price else 0.0
    return Quote(
        instrument_id=instrument_id,
        base_price=base_price,
        yearly_price=yearly_reference_price,
        display_price=display_price,
        change=round(change, 2),
        change_percent=round(change_percent, 2),
    )
