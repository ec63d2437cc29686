"""Domain errors raised by the trade and portfolio engines.

Each error carries a stable ``code`` and the HTTP status the API layer
maps it to.  Pricing, clock and valuation functions never raise these.
"""


class SimulationError(Exception):
    code = "simulation_error"
    status_code = 400


class NotAuthenticated(SimulationError):
    code = "not_authenticated"
    status_code = 401


class InstrumentNotFound(SimulationError):
    code = "instrument_not_found"
    status_code = 404

    def __init__(self, instrument_id: str):
        super().__init__(f"Instrument '{instrument_id}' not found.")
        self.instrument_id = instrument_id


class PortfolioNotFound(SimulationError):
    code = "portfolio_not_found"
    status_code = 404

    def __init__(self, user_id):
        super().__init__(f"No portfolio for user {user_id}.")
        self.user_id = user_id


class InsufficientFunds(SimulationError):
    code = "insufficient_funds"

    def __init__(self, cost: float, available: float):
        super().__init__(
            f"Insufficient balance. Need {cost:,.2f}, have {available:,.2f}."
        )
        self.cost = cost
        self.available = available


class InsufficientPosition(SimulationError):
    code = "insufficient_position"

    def __init__(self, symbol: str, requested: float, held: float):
        super().__init__(
            f"Cannot sell {requested:g} of {symbol} -- only {held:g} held."
        )
        self.requested = requested
        self.held = held


class InvalidTrade(SimulationError):
    code = "invalid_trade"


class InvalidTradeQuantity(InvalidTrade):
    """Non-positive amount, or a fractional share count for a stock."""

    code = "invalid_trade_quantity"


class SimulationEnded(SimulationError):
    code = "simulation_ended"
    status_code = 409

    def __init__(self, final_year: int):
        super().__init__(
            f"The simulation ended at year {final_year}. Reset to start a new run."
        )
        self.final_year = final_year
