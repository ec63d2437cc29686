"""Tests for portfolio valuation, the risk score and tracker facts."""
import pytest

from stocksense.simulation import constants as C
from stocksense.simulation.valuation_engine import Position, risk_score, tracker_facts, valuate


def _position(iid, kind=C.KIND_STOCK, qty=10, avg=100.0, category="Medium", key="Technology"):
    return Position(
        instrument_id=iid,
        kind=kind,
        symbol=iid.upper(),
        name=iid,
        quantity=qty,
        average_price=avg,
        risk_category=category,
        diversification_key=key,
    )


def test_empty_portfolio():
    metrics = valuate([], {}, 100000.0)
    assert metrics.total_value == 100000.0
    assert metrics.holdings_value == 0
    assert metrics.unrealized_pl == 0
    assert metrics.unrealized_pl_percent == 0.0
    assert metrics.cash_deployed == 0
    assert metrics.risk_score == 20


def test_position_and_totals():
    holdings = [
        _position("a", qty=10, avg=100.0),
        _position("b", kind=C.KIND_MUTUAL_FUND, qty=50.0, avg=20.0,
                  category="large_cap", key="large_cap"),
    ]
    prices = {"a": 120.0, "b": 18.0}
    metrics = valuate(holdings, prices, 98000.0)

    a, b = metrics.positions
    assert a.current_value == 1200.0
    assert a.invested_value == 1000.0
    assert a.profit_loss == 200.0
    assert a.profit_loss_percent == pytest.approx(20.0)
    assert b.profit_loss == pytest.approx(-100.0)

    assert metrics.holdings_value == pytest.approx(2100.0)
    assert metrics.total_value == pytest.approx(100100.0)
    assert metrics.total_invested == pytest.approx(2000.0)
    assert metrics.unrealized_pl == pytest.approx(100.0)
    assert metrics.unrealized_pl_percent == pytest.approx(5.0)
    assert metrics.cash_deployed == pytest.approx(2000.0)
    assert metrics.by_kind[C.KIND_STOCK].total_value == pytest.approx(1200.0)
    assert metrics.by_kind[C.KIND_MUTUAL_FUND].unrealized_pl == pytest.approx(-100.0)
    assert metrics.by_kind[C.KIND_INDEX_FUND].total_value == 0


def test_unpriced_holdings_are_skipped():
    metrics = valuate([_position("a"), _position("gone")], {"a": 100.0}, 0.0)
    assert [p.position.instrument_id for p in metrics.positions] == ["a"]


def test_zero_invested_guards_percent():
    metrics = valuate([_position("a", avg=0.0)], {"a": 5.0}, 0.0)
    assert metrics.positions[0].profit_loss_percent == 0.0
    assert metrics.unrealized_pl_percent == 0.0


def test_risk_single_high_risk_stock():
    metrics = valuate([_position("a", category="High")], {"a": 100.0}, 0.0)
    # 1.0*50 + 1.0*30 - 5 + 20
    assert metrics.risk_score == 95


def test_risk_diversified_low_risk():
    holdings = [
        _position(f"s{i}", category="Low", key=f"sector{i}") for i in range(10)
    ]
    prices = {f"s{i}": 100.0 for i in range(10)}
    # 0.1*50 + 0 - 25 + 20 = 0
    assert valuate(holdings, prices, 0.0).risk_score == 0


def test_risk_rounds_half_up():
    holdings = [
        _position("a", qty=3, category="Low", key="x"),
        _position("b", qty=1, category="Low", key="x"),
    ]
    prices = {"a": 100.0, "b": 100.0}
    # 0.75*50 + 0 - 5 + 20 = 52.5
    assert valuate(holdings, prices, 0.0).risk_score == 53


def test_risk_zero_value_holdings_score_baseline():
    metrics = valuate([_position("a", qty=1)], {"a": 0.0}, 0.0)
    assert metrics.risk_score == 20


@pytest.mark.parametrize("n", range(1, 8))
def test_risk_bounds(n):
    holdings = [
        _position(f"h{i}", qty=i + 1, category="High" if i % 2 else "Low", key=f"k{i % 3}")
        for i in range(n)
    ]
    prices = {f"h{i}": 10.0 * (i + 1) for i in range(n)}
    assert 0 <= risk_score(valuate(holdings, prices, 0.0).positions) <= 100


def test_tracker_facts():
    holdings = [
        _position("a", key="Technology"),
        _position("b", key="Finance"),
        _position("c", key="Technology"),
        _position("m", kind=C.KIND_MUTUAL_FUND, category="mid_cap", key="mid_cap"),
        _position("i", kind=C.KIND_INDEX_FUND, category="index", key="index"),
    ]
    prices = {iid: 100.0 for iid in "abcmi"}
    metrics = valuate(holdings, prices, 95000.0)
    facts = tracker_facts(metrics, simulated_year=4)

    assert facts["holdings_count"] == 5
    assert facts["stocks_owned"] == 3
    assert facts["sectors"] == ["Finance", "Technology"]
    assert facts["sector_count"] == 2
    assert facts["mutual_fund_categories"] == ["mid_cap"]
    assert facts["index_funds_owned"] == 1
    assert facts["portfolio_value"] == pytest.approx(100000.0)
    assert facts["portfolio_return_percent"] == pytest.approx(0.0)
    assert facts["simulated_year"] == 4
