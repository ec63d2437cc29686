"""Wall-clock to simulated-year conversion.

A run is anchored at ``year_started_at``; every ``YEAR_DURATION`` of real
time advances the simulated calendar by one year, up to the run's cap.
Naive datetimes (SQLite drops tzinfo) are read as UTC.
"""
from datetime import datetime, timedelta, timezone

from stocksense.simulation import constants as C

YEAR_DURATION = timedelta(seconds=C.YEAR_DURATION_SECONDS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def years_elapsed(
    year_started_at: datetime,
    now: datetime | None = None,
    year_duration: timedelta = YEAR_DURATION,
) -> int:
    elapsed = _as_utc(now or utcnow()) - _as_utc(year_started_at)
    return max(0, elapsed // year_duration)


def simulated_year(
    year_started_at: datetime,
    now: datetime | None = None,
    max_years: int = C.MAX_SIMULATION_YEARS,
    year_duration: timedelta = YEAR_DURATION,
) -> int:
    """Current simulated year in ``1..max_years``; non-decreasing in *now*."""
    return min(1 + years_elapsed(year_started_at, now, year_duration), max(max_years, 1))


def next_year_starts_at(
    year_started_at: datetime,
    now: datetime | None = None,
    year_duration: timedelta = YEAR_DURATION,
) -> datetime:
    years = years_elapsed(year_started_at, now, year_duration)
    return _as_utc(year_started_at) + (years + 1) * year_duration


def time_until_next_year(
    year_started_at: datetime,
    now: datetime | None = None,
    max_years: int = C.MAX_SIMULATION_YEARS,
    year_duration: timedelta = YEAR_DURATION,
) -> timedelta:
    """Countdown to the next year boundary; zero once the cap is reached."""
    now = now or utcnow()
    if simulated_year(year_started_at, now, max_years, year_duration) >= max_years:
        return timedelta(0)
    remaining = next_year_starts_at(year_started_at, now, year_duration) - _as_utc(now)
    return max(remaining, timedelta(0))
