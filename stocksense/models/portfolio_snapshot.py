from sqlalchemy import Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class PortfolioSnapshot(Base):
    """Portfolio value at a simulated year; the chart's data points."""

    __tablename__ = "portfolio_snapshots"
    __table_args__ = (UniqueConstraint("portfolio_id", "year"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("portfolios.id"), index=True
    )
    year: Mapped[int] = mapped_column(Integer)
    total_value: Mapped[float] = mapped_column(Float)
    invested: Mapped[float] = mapped_column(Float)

    def as_dict(self) -> dict:
        return {"year": self.year, "total_value": self.total_value, "invested": self.invested}
