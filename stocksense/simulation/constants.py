"""
StockSense simulation constants.

Volatility figures are annual returns expressed as fractions (-0.10 = -10%).
"""
from dataclasses import dataclass

# ============================================================
# Simulated calendar
# ============================================================
STARTING_CASH = 100000.0
MAX_SIMULATION_YEARS = 20
YEAR_DURATION_SECONDS = 24 * 60 * 60  # 1 real day = 1 simulated year

# ============================================================
# Market loop timers (seconds of real time)
# ============================================================
INTRADAY_TICK_SECONDS = 10.0
YEAR_CHECK_SECONDS = 60.0

# ============================================================
# Instrument kinds and categories
# ============================================================
KIND_STOCK = "stock"
KIND_MUTUAL_FUND = "mutual_fund"
KIND_INDEX_FUND = "index_fund"

INSTRUMENT_KINDS = (KIND_STOCK, KIND_MUTUAL_FUND, KIND_INDEX_FUND)
FUND_KINDS = (KIND_MUTUAL_FUND, KIND_INDEX_FUND)

RISK_LOW = "Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"

CATEGORY_LARGE_CAP = "large_cap"
CATEGORY_MID_CAP = "mid_cap"
CATEGORY_SMALL_CAP = "small_cap"
CATEGORY_INDEX = "index"

# Fallback profile keys for unknown categories
DEFAULT_STOCK_CATEGORY = RISK_MEDIUM
DEFAULT_FUND_CATEGORY = CATEGORY_LARGE_CAP


@dataclass(frozen=True)
class VolatilityProfile:
    min_annual_return: float
    max_annual_return: float
    market_bias: float        # average upward drift
    bias_threshold: float     # rolls above this get +bias, below get -bias/2
    floor_fraction: float     # price never walks below base * floor_fraction
    intraday_amplitude: float  # max +/- fractional tick noise

    def __post_init__(self):
        if self.min_annual_return >= self.max_annual_return:
            raise ValueError(
                f"min_annual_return {self.min_annual_return} must be below "
                f"max_annual_return {self.max_annual_return}"
            )


STOCK_MARKET_BIAS = 0.06
STOCK_BIAS_THRESHOLD = 0.3
STOCK_PRICE_FLOOR = 0.10

FUND_MARKET_BIAS = 0.08
FUND_BIAS_THRESHOLD = 0.25
FUND_NAV_FLOOR = 0.20


def _stock(lo, hi, intraday):
    return VolatilityProfile(lo, hi, STOCK_MARKET_BIAS, STOCK_BIAS_THRESHOLD, STOCK_PRICE_FLOOR, intraday)


def _fund(lo, hi, intraday):
    return VolatilityProfile(lo, hi, FUND_MARKET_BIAS, FUND_BIAS_THRESHOLD, FUND_NAV_FLOOR, intraday)


VOLATILITY_PROFILES: dict[str, VolatilityProfile] = {
    RISK_HIGH: _stock(-0.35, 0.50, 0.003),
    RISK_MEDIUM: _stock(-0.20, 0.30, 0.002),
    RISK_LOW: _stock(-0.10, 0.18, 0.001),
    CATEGORY_LARGE_CAP: _fund(-0.15, 0.28, 0.001),
    CATEGORY_MID_CAP: _fund(-0.25, 0.45, 0.0015),
    CATEGORY_SMALL_CAP: _fund(-0.35, 0.60, 0.002),
    CATEGORY_INDEX: _fund(-0.18, 0.30, 0.0008),
}

# ============================================================
# Trading
# ============================================================
TRADE_BUY = "BUY"
TRADE_SELL = "SELL"

# Fund units below this are dust and close the position
UNITS_EPSILON = 1e-6

# ============================================================
# Risk score heuristic (0-100, higher = riskier)
# ============================================================
RISK_SCORE_BASELINE = 20
RISK_CONCENTRATION_WEIGHT = 50
RISK_HIGH_EXPOSURE_WEIGHT = 30
DIVERSIFICATION_STEP = 5
DIVERSIFICATION_CAP = 25
HIGH_RISK_CATEGORIES = frozenset({RISK_HIGH})

# ============================================================
# End-of-run report
# ============================================================
# (minimum total return %, grade, title), checked top to bottom
INVESTOR_GRADES = [
    (200, "A+", "Legendary Investor"),
    (100, "A", "Master Investor"),
    (50, "B+", "Skilled Investor"),
    (20, "B", "Growing Investor"),
    (0, "C", "Cautious Investor"),
    (-20, "D", "Learning Investor"),
]
FALLBACK_GRADE = ("F", "Keep Learning!")

GOOD_DIVERSIFICATION_HOLDINGS = 5
POOR_DIVERSIFICATION_HOLDINGS = 3
CASH_HEAVY_FRACTION = 0.5
