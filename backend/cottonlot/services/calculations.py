"""Calculation store: persist and read back priced calculations.

A calculation is written in one transaction: the calculation row, then its
batches, then their samples.  Either all rows land or none do.  There is no
update path; a saved calculation is final.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cottonlot.middleware.exceptions import PersistenceError, ResourceNotFoundError
from cottonlot.models.batch import Batch
from cottonlot.models.calculation import Calculation
from cottonlot.models.sample import Sample
from cottonlot.services.drafts import CalculationDraft

logger = logging.getLogger(__name__)


@dataclass
class CalculationListItem:
    id: str
    title: str
    created_at: datetime
    market_quotation: float
    quotation_date: date | None
    exchange_rate: float | None
    batch_count: int


async def save_calculation(
    db: AsyncSession,
    *,
    title: str,
    market_quotation: float,
    batches: Iterable,
    quotation_date: date | None = None,
    exchange_rate: float | None = None,
    created_at: datetime | None = None,
) -> str:
    """Persist a calculation with its batches and priced samples.

    ``batches`` are draft batches (or anything exposing the batch fields and
    ``priced_samples``).  Returns the new calculation id.  Raises
    ``PersistenceError`` after rolling back if any write fails.
    """
    calc = Calculation(
        title=title,
        market_quotation=market_quotation,
        quotation_date=quotation_date,
        exchange_rate=exchange_rate,
        created_at=created_at or datetime.utcnow(),
    )
    sample_rows = 0
    try:
        db.add(calc)
        await db.flush()

        for b_pos, batch in enumerate(batches):
            batch_row = Batch(
                calculation_id=calc.id,
                position=b_pos,
                year=batch.year,
                batch_code=batch.batch_code,
                weight=batch.weight,
                bales_count=batch.bales_count,
                samples_count=batch.samples_count,
            )
            db.add(batch_row)
            await db.flush()

            for s_pos, priced in enumerate(batch.priced_samples):
                db.add(Sample(
                    batch_id=batch_row.id,
                    position=s_pos,
                    quantity=priced.quantity,
                    color_grade=priced.color_grade,
                    leaf_grade=priced.leaf_grade,
                    staple_length=priced.staple_length,
                    market_quotation=priced.market_quotation,
                    weight=priced.weight,
                    premium_discount=priced.premium_discount,
                    unit_price=priced.unit_price,
                    amount=priced.amount,
                ))
                sample_rows += 1

        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Saving calculation %r failed: %s", title, exc)
        raise PersistenceError() from exc

    logger.info(
        "Saved calculation %s (%r) with %d samples", calc.id, title, sample_rows
    )
    return calc.id


async def save_draft(db: AsyncSession, draft: CalculationDraft) -> str:
    """Check the save gate, persist the draft and mark it saved."""
    draft.check_save_preconditions()
    calculation_id = await save_calculation(
        db,
        title=draft.resolved_title(),
        market_quotation=draft.market_quotation,
        quotation_date=draft.quotation_date,
        exchange_rate=draft.exchange_rate,
        batches=draft.batches,
    )
    draft.mark_saved(calculation_id)
    return calculation_id


async def get_calculation(db: AsyncSession, calculation_id: str) -> Calculation:
    """Load a calculation with batches and samples in display order."""
    result = await db.execute(
        select(Calculation)
        .where(Calculation.id == calculation_id)
        .options(selectinload(Calculation.batches).selectinload(Batch.samples))
        .execution_options(populate_existing=True)
    )
    calc = result.scalar_one_or_none()
    if calc is None:
        raise ResourceNotFoundError("Calculation", calculation_id)
    return calc


async def count_calculations(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(Calculation.id)))).scalar_one()


async def list_calculations(
    db: AsyncSession, limit: int | None = None, offset: int = 0
) -> list[CalculationListItem]:
    """Summaries ordered newest first, each with its batch count."""
    batch_count = (
        select(func.count(Batch.id))
        .where(Batch.calculation_id == Calculation.id)
        .correlate(Calculation)
        .scalar_subquery()
    )
    stmt = (
        select(Calculation, batch_count.label("batch_count"))
        .order_by(Calculation.created_at.desc())
        .offset(offset)
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    result = await db.execute(stmt)
    return [
        CalculationListItem(
            id=calc.id,
            title=calc.title,
            created_at=calc.created_at,
            market_quotation=calc.market_quotation,
            quotation_date=calc.quotation_date,
            exchange_rate=calc.exchange_rate,
            batch_count=count,
        )
        for calc, count in result.all()
    ]
