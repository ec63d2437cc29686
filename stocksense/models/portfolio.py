import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Portfolio(Base):
    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("user_accounts.id"), unique=True)
    cash_balance: Mapped[float] = mapped_column(Float, default=100000.0)
    # Last persisted simulated year; never decreases within a run.
    simulated_year: Mapped[int] = mapped_column(Integer, default=1)
    year_started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    is_ended: Mapped[bool] = mapped_column(Boolean, default=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )
