"""Sample: one graded portion of a batch, stored with its derived prices.

Derived columns are written at save time from the pricing engine and never
recomputed; ``market_quotation`` is the quotation this sample was priced with.
"""

import uuid

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cottonlot.database import Base


class Sample(Base):
    __tablename__ = "samples"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    # ── Grading ──────────────────────────────────────────────
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    color_grade: Mapped[str] = mapped_column(String(10), nullable=False)  # SM | MID | SLM
    leaf_grade: Mapped[int] = mapped_column(Integer, nullable=False)
    staple_length: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Derived at save time ─────────────────────────────────
    market_quotation: Mapped[float] = mapped_column(Float, nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    premium_discount: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)

    batch = relationship("Batch", back_populates="samples")
