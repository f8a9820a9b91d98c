"""Batch: a lot of cotton bales graded from a set of samples.

``samples_count`` is the declared number of samples the batch is split into;
each sample's weight share is ``weight * quantity / samples_count``.
"""

import uuid

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cottonlot.database import Base


class Batch(Base):
    __tablename__ = "batches"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    calculation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("calculations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    # Display order within the calculation
    position: Mapped[int] = mapped_column(Integer, default=0)

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    # Format 000/00
    batch_code: Mapped[str] = mapped_column(String(20), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)  # kg
    bales_count: Mapped[int] = mapped_column(Integer, nullable=False)
    samples_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Relationships ────────────────────────────────────────
    calculation = relationship("Calculation", back_populates="batches")
    samples = relationship(
        "Sample", back_populates="batch",
        order_by="Sample.position",
        cascade="all, delete-orphan",
    )

    @property
    def priced_samples(self):
        return self.samples

    @property
    def is_complete(self) -> bool:
        return sum(s.quantity for s in self.samples) == self.samples_count
