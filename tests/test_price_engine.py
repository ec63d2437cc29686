"""Tests for the deterministic yearly walk and intraday jitter."""
import random

import pytest

from stocksense.simulation import constants as C
from stocksense.simulation import price_engine as pe

ZERO_ID = "00000000-0000-0000-0000-000000000000"
SAMPLE_ID = "3f2a9c1e-7b44-4d0a-9e61-52c8d1f0a7b3"


# ── Seeds ───────────────────────────────────────────────────────────────────

def test_seeded_random_in_unit_interval():
    for seed in range(-50, 500):
        value = pe.seeded_random(seed)
        assert 0 <= value < 1


def test_seeded_random_known_values():
    assert pe.seeded_random(1) == pytest.approx(0.709848078965, abs=1e-9)
    assert pe.seeded_random(2) == pytest.approx(0.974268256817, abs=1e-9)


def test_base_seed_uses_leading_hex_digits():
    assert pe.base_seed(ZERO_ID) == 0
    assert pe.base_seed("0000000a-ffff-ffff-ffff-ffffffffffff") == 10
    assert pe.base_seed(SAMPLE_ID) == int("3f2a9c1e", 16)


def test_base_seed_non_hex_id_is_stable():
    assert pe.base_seed("not-a-uuid") == pe.base_seed("not-a-uuid")
    assert pe.base_seed("not-a-uuid") != pe.base_seed("other-id")


# ── Yearly walk ─────────────────────────────────────────────────────────────

def test_golden_value():
    assert pe.yearly_price(ZERO_ID, 100.0, "Low", 3) == 142.85


def test_year_one_is_base_price():
    assert pe.yearly_price(SAMPLE_ID, 2450.0, "High", 1) == 2450.0
    assert pe.yearly_price(SAMPLE_ID, 2450.0, "High", 0) == 2450.0
    assert pe.yearly_price(SAMPLE_ID, 2450.0, "High", -4) == 2450.0


@pytest.mark.parametrize("category", list(C.VOLATILITY_PROFILES))
def test_walk_is_deterministic(category):
    first = [pe.yearly_price(SAMPLE_ID, 500.0, category, y) for y in range(1, 21)]
    second = [pe.yearly_price(SAMPLE_ID, 500.0, category, y) for y in range(1, 21)]
    assert first == second


@pytest.mark.parametrize("category", list(C.VOLATILITY_PROFILES))
def test_walk_never_below_floor(category):
    profile = C.VOLATILITY_PROFILES[category]
    base = 37.5
    floor = base * profile.floor_fraction
    for n in range(40):
        instrument_id = f"{n:08x}-0000-0000-0000-000000000000"
        for year in range(1, 51):
            assert pe.yearly_price(instrument_id, base, category, year) >= floor


def test_unknown_category_falls_back_per_kind():
    stock = pe.yearly_price(SAMPLE_ID, 100.0, "Bogus", 6, kind=C.KIND_STOCK)
    medium = pe.yearly_price(SAMPLE_ID, 100.0, "Medium", 6)
    assert stock == medium

    fund = pe.yearly_price(SAMPLE_ID, 100.0, None, 6, kind=C.KIND_MUTUAL_FUND)
    large_cap = pe.yearly_price(SAMPLE_ID, 100.0, "large_cap", 6)
    assert fund == large_cap


def test_cache_is_write_once():
    cache = pe.YearlyPriceCache()
    price = pe.yearly_price(SAMPLE_ID, 100.0, "Medium", 5, cache=cache)
    assert (SAMPLE_ID, 5) in cache
    assert len(cache) == 1
    assert cache.put(SAMPLE_ID, 5, 1.0) == price
    assert pe.yearly_price(SAMPLE_ID, 100.0, "Medium", 5, cache=cache) == price

    cache.clear()
    assert len(cache) == 0


def test_yearly_history_starts_at_base():
    history = pe.yearly_history(ZERO_ID, 100.0, "Low", 3)
    assert [h["year"] for h in history] == [1, 2, 3]
    assert history[0]["price"] == 100.0
    assert history[2]["price"] == 142.85


def test_volatility_profile_requires_ordered_range():
    with pytest.raises(ValueError):
        C.VolatilityProfile(0.2, 0.1, 0.0, 0.5, 0.1, 0.001)


# ── Intraday jitter ─────────────────────────────────────────────────────────

def test_jitter_stays_within_amplitude():
    rng = random.Random(42)
    reference = 1000.0
    amplitude = 0.003
    for _ in range(500):
        display = pe.jittered_price(reference, amplitude, rng)
        assert reference * (1 - amplitude) - 0.01 <= display <= reference * (1 + amplitude) + 0.01


def test_jitter_is_reproducible_with_seeded_rng():
    a = [pe.jittered_price(250.0, 0.002, random.Random(7)) for _ in range(3)]
    b = [pe.jittered_price(250.0, 0.002, random.Random(7)) for _ in range(3)]
    assert a == b


def test_make_quote_change_fields():
    quote = pe.make_quote("x", 100.0, 120.0, 121.0)
    assert quote.change == 21.0
    assert quote.change_percent == 21.0
    assert quote.yearly_price == 120.0
    assert quote.as_dict()["display_price"] == 121.0
