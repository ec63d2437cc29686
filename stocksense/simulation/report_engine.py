"""End-of-run investment report: grade, CAGR, performers and insights."""
from stocksense.simulation import constants as C
from stocksense.simulation.valuation_engine import PortfolioMetrics


def investor_grade(total_return_percent: float) -> tuple[str, str]:
    for threshold, grade, title in C.INVESTOR_GRADES:
        if total_return_percent >= threshold:
            return grade, title
    return C.FALLBACK_GRADE


def cagr(total_value: float, starting_cash: float, final_year: int) -> float:
    """Compound annual growth rate in percent over *final_year* years."""
    if starting_cash <= 0 or total_value <= 0 or final_year <= 0:
        return 0.0
    return ((total_value / starting_cash) ** (1 / final_year) - 1) * 100


def _insights(metrics: PortfolioMetrics, total_return_percent: float, final_year: int) -> list[str]:
    holdings_count = len(metrics.positions)
    insights = []
    if total_return_percent > 0:
        insights.append(f"You grew your money by staying invested over {final_year} years!")
    if holdings_count >= C.GOOD_DIVERSIFICATION_HOLDINGS:
        insights.append(f"Good diversification with {holdings_count} different holdings.")
    if holdings_count < C.POOR_DIVERSIFICATION_HOLDINGS:
        insights.append("Try diversifying more next time - don't put all eggs in one basket.")
    if metrics.cash_balance > metrics.total_value * C.CASH_HEAVY_FRACTION:
        insights.append("You kept a lot in cash. Investing more could have grown your wealth faster.")
    insights.append("The key to wealth is consistency, patience, and continuous learning!")
    return insights


def build_report(
    metrics: PortfolioMetrics,
    final_year: int,
    starting_cash: float = C.STARTING_CASH,
) -> dict:
    total_return = metrics.total_value - starting_cash
    total_return_percent = total_return / starting_cash * 100 if starting_cash > 0 else 0.0
    grade, title = investor_grade(total_return_percent)

    ranked = sorted(metrics.positions, key=lambda p: p.profit_loss_percent, reverse=True)
    best = ranked[0] if ranked else None
    # A single holding is the best performer, not also the worst.
    worst = ranked[-1] if len(ranked) > 1 else None

    sectors: dict[str, float] = {}
    for p in metrics.positions:
        key = p.position.diversification_key
        sectors[key] = sectors.get(key, 0.0) + p.current_value

    def performer(p):
        if p is None:
            return None
        return {
            "instrument_id": p.position.instrument_id,
            "symbol": p.position.symbol,
            "name": p.position.name,
            "profit_loss_percent": round(p.profit_loss_percent, 2),
        }

    return {
        "final_year": final_year,
        "starting_cash": starting_cash,
        "total_value": round(metrics.total_value, 2),
        "cash_balance": round(metrics.cash_balance, 2),
        "total_return": round(total_return, 2),
        "total_return_percent": round(total_return_percent, 2),
        "cagr": round(cagr(metrics.total_value, starting_cash, final_year), 2),
        "grade": grade,
        "title": title,
        "holdings_count": len(metrics.positions),
        "best_performer": performer(best),
        "worst_performer": performer(worst),
        "sector_distribution": {k: round(v, 2) for k, v in sorted(sectors.items())},
        "insights": _insights(metrics, total_return_percent, final_year),
    }
