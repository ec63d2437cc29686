from typing import Optional

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Instrument(Base):
    """A tradable stock, mutual fund or index fund.

    All three kinds share one table.  The pricing engine only reads the
    common projection (``id``, ``kind``, ``base_price``, ``risk_category``);
    the remaining columns are descriptive and nullable for kinds that do
    not use them.
    """

    __tablename__ = "instruments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    kind: Mapped[str] = mapped_column(String(16), index=True)  # "stock", "mutual_fund", "index_fund"
    symbol: Mapped[str] = mapped_column(String(32), unique=True)
    name: Mapped[str] = mapped_column(String(128))
    base_price: Mapped[float] = mapped_column(Float)
    # Volatility profile key: Low/Medium/High, large_cap/mid_cap/small_cap, index
    risk_category: Mapped[str] = mapped_column(String(16))
    risk_level: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    # Stocks
    sector: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    industry: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    market_cap: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # Funds
    amc: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    tracking_index: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    expense_ratio: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    tracking_error: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    one_year_return: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    three_year_return: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    five_year_return: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    aum: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    description: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "symbol": self.symbol,
            "name": self.name,
            "base_price": self.base_price,
            "risk_category": self.risk_category,
            "risk_level": self.risk_level,
            "sector": self.sector,
            "industry": self.industry,
            "market_cap": self.market_cap,
            "amc": self.amc,
            "tracking_index": self.tracking_index,
            "expense_ratio": self.expense_ratio,
            "tracking_error": self.tracking_error,
            "one_year_return": self.one_year_return,
            "three_year_return": self.three_year_return,
            "five_year_return": self.five_year_return,
            "aum": self.aum,
            "description": self.description,
        }
