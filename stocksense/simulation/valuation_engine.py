"""Portfolio valuation -- position P&L, portfolio totals and the risk score.

Everything here is pure arithmetic over plain data, so it is safe to call
from request handlers, the market loop and the end-of-run report alike.
"""
import math
from dataclasses import asdict, dataclass, field

from stocksense.simulation import constants as C


@dataclass
class Position:
    """A holding joined with the instrument fields valuation needs."""

    instrument_id: str
    kind: str
    symbol: str
    name: str
    quantity: float
    average_price: float
    risk_category: str
    diversification_key: str

    @classmethod
    def from_holding(cls, holding, instrument) -> "Position":
        # Stocks diversify by sector, funds by their category.
        key = instrument.sector if instrument.kind == C.KIND_STOCK else instrument.risk_category
        return cls(
            instrument_id=instrument.id,
            kind=instrument.kind,
            symbol=instrument.symbol,
            name=instrument.name,
            quantity=holding.quantity,
            average_price=holding.average_price,
            risk_category=instrument.risk_category,
            diversification_key=key or instrument.risk_category,
        )


@dataclass
class PositionMetrics:
    position: Position
    current_price: float
    current_value: float
    invested_value: float
    profit_loss: float
    profit_loss_percent: float

    def as_dict(self) -> dict:
        data = asdict(self.position)
        data.update(
            current_price=self.current_price,
            current_value=self.current_value,
            invested_value=self.invested_value,
            profit_loss=self.profit_loss,
            profit_loss_percent=self.profit_loss_percent,
        )
        return data


@dataclass
class KindBreakdown:
    total_value: float = 0.0
    invested_value: float = 0.0
    unrealized_pl: float = 0.0


@dataclass
class PortfolioMetrics:
    cash_balance: float
    holdings_value: float
    total_value: float
    total_invested: float
    cash_deployed: float
    unrealized_pl: float
    unrealized_pl_percent: float
    risk_score: int
    positions: list[PositionMetrics] = field(default_factory=list)
    by_kind: dict[str, KindBreakdown] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "cash_balance": self.cash_balance,
            "holdings_value": self.holdings_value,
            "total_value": self.total_value,
            "total_invested": self.total_invested,
            "cash_deployed": self.cash_deployed,
            "unrealized_pl": self.unrealized_pl,
            "unrealized_pl_percent": self.unrealized_pl_percent,
            "risk_score": self.risk_score,
            "by_kind": {kind: asdict(b) for kind, b in self.by_kind.items()},
        }


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def position_metrics(position: Position, current_price: float) -> PositionMetrics:
    current_value = current_price * position.quantity
    invested_value = position.average_price * position.quantity
    profit_loss = current_value - invested_value
    return PositionMetrics(
        position=position,
        current_price=current_price,
        current_value=current_value,
        invested_value=invested_value,
        profit_loss=profit_loss,
        profit_loss_percent=_percent(profit_loss, invested_value),
    )


def risk_score(positions: list[PositionMetrics]) -> int:
    """Heuristic 0-100 score: concentration and high-risk exposure minus diversification.

    An empty portfolio, or one whose holdings are worth nothing, scores the
    baseline.
    """
    total = sum(p.current_value for p in positions)
    if not positions or total <= 0:
        return C.RISK_SCORE_BASELINE

    max_concentration = max(p.current_value / total for p in positions)
    high_risk_exposure = sum(
        p.current_value for p in positions
        if p.position.risk_category in C.HIGH_RISK_CATEGORIES
    ) / total
    distinct = len({p.position.diversification_key for p in positions})
    diversification_bonus = min(distinct * C.DIVERSIFICATION_STEP, C.DIVERSIFICATION_CAP)

    raw = (
        max_concentration * C.RISK_CONCENTRATION_WEIGHT
        + high_risk_exposure * C.RISK_HIGH_EXPOSURE_WEIGHT
        - diversification_bonus
        + C.RISK_SCORE_BASELINE
    )
    # Half-up rounding, not banker's rounding.
    return max(0, min(100, math.floor(raw + 0.5)))


def valuate(
    holdings: list[Position],
    prices: dict[str, float],
    cash_balance: float,
    starting_cash: float = C.STARTING_CASH,
) -> PortfolioMetrics:
    """Value *holdings* at *prices* (instrument id -> current price).

    Holdings whose instrument has no price are left out, as if delisted.
    """
    positions = [
        position_metrics(h, prices[h.instrument_id])
        for h in holdings
        if h.instrument_id in prices
    ]

    by_kind = {kind: KindBreakdown() for kind in C.INSTRUMENT_KINDS}
    for p in positions:
        breakdown = by_kind.setdefault(p.position.kind, KindBreakdown())
        breakdown.total_value += p.current_value
        breakdown.invested_value += p.invested_value
        breakdown.unrealized_pl += p.profit_loss

    holdings_value = sum(p.current_value for p in positions)
    total_invested = sum(p.invested_value for p in positions)
    unrealized_pl = holdings_value - total_invested

    return PortfolioMetrics(
        cash_balance=cash_balance,
        holdings_value=holdings_value,
        total_value=cash_balance + holdings_value,
        total_invested=total_invested,
        cash_deployed=starting_cash - cash_balance,
        unrealized_pl=unrealized_pl,
        unrealized_pl_percent=_percent(unrealized_pl, total_invested),
        risk_score=risk_score(positions),
        positions=positions,
        by_kind=by_kind,
    )


def tracker_facts(
    metrics: PortfolioMetrics,
    simulated_year: int,
    starting_cash: float = C.STARTING_CASH,
) -> dict:
    """Aggregated facts an external challenge tracker scores progress from."""
    positions = [p.position for p in metrics.positions]
    sectors = {p.diversification_key for p in positions if p.kind == C.KIND_STOCK}
    fund_categories = {p.risk_category for p in positions if p.kind == C.KIND_MUTUAL_FUND}
    return {
        "holdings_count": len(positions),
        "stocks_owned": sum(1 for p in positions if p.kind == C.KIND_STOCK),
        "sectors": sorted(sectors),
        "sector_count": len(sectors),
        "mutual_fund_categories": sorted(fund_categories),
        "category_count": len(fund_categories),
        "index_funds_owned": sum(1 for p in positions if p.kind == C.KIND_INDEX_FUND),
        "portfolio_value": metrics.total_value,
        "portfolio_return_percent": _percent(metrics.total_value - starting_cash, starting_cash),
        "simulated_year": simulated_year,
    }
