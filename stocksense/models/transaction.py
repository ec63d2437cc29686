from datetime import datetime

from sqlalchemy import Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Transaction(Base):
    """Append-only audit record of an executed trade."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("portfolios.id"), index=True
    )
    instrument_id: Mapped[str] = mapped_column(String(36), ForeignKey("instruments.id"))
    transaction_type: Mapped[str] = mapped_column(String(8))  # "BUY" or "SELL"
    quantity: Mapped[float] = mapped_column(Float)
    price_per_unit: Mapped[float] = mapped_column(Float)
    total_amount: Mapped[float] = mapped_column(Float)
    simulated_year: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "instrument_id": self.instrument_id,
            "type": self.transaction_type,
            "quantity": self.quantity,
            "price_per_unit": self.price_per_unit,
            "total_amount": self.total_amount,
            "simulated_year": self.simulated_year,
        }
