"""Imports every model so its table is registered on ``Base.metadata``."""
from stocksense.models import (  # noqa: F401
    holding,
    instrument,
    portfolio,
    portfolio_snapshot,
    simulation_report,
    transaction,
    user_account,
)
