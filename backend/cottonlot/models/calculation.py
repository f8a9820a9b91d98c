"""Calculation: one saved pricing session.

Holds the market parameters the session was priced against and owns its
batches.  Rows are written once by the store and never updated.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cottonlot.database import Base


class Calculation(Base):
    __tablename__ = "calculations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Market parameters ────────────────────────────────────
    # A Index in US cents per lb; exchange rate is informational only
    market_quotation: Mapped[float] = mapped_column(Float, nullable=False)
    quotation_date: Mapped[date | None] = mapped_column(Date)
    exchange_rate: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    # ── Relationships ────────────────────────────────────────
    batches = relationship(
        "Batch", back_populates="calculation",
        order_by="Batch.position",
        cascade="all, delete-orphan",
    )
