"""Calculation router: preview, save and read back priced calculations.

Endpoints:
    POST   /api/calculations/preview              Price a payload without saving
    POST   /api/calculations/                     Validate, gate and save
    GET    /api/calculations/                     List calculations (newest first)
    GET    /api/calculations/{calc_id}            Full calculation with stats
    GET    /api/calculations/{calc_id}/report.txt Plain-text report
    GET    /api/calculations/{calc_id}/report.pdf PDF report
    GET    /api/calculations/{calc_id}/qr         QR code SVG of the retrieval URL
"""

import io

import segno
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cottonlot.config import settings
from cottonlot.database import get_db
from cottonlot.schemas.calculation import (
    BatchOut,
    BatchStatsOut,
    CalculationCreate,
    CalculationOut,
    CalculationPreview,
    CalculationSaved,
    CalculationStatsOut,
    CalculationSummary,
    DraftBatchOut,
    DraftSampleOut,
    SampleOut,
)
from cottonlot.schemas.common import PaginatedResponse
from cottonlot.services.aggregation import aggregate_batch, aggregate_calculation
from cottonlot.services.calculations import (
    count_calculations,
    get_calculation,
    list_calculations,
    save_draft,
)
from cottonlot.services.drafts import CalculationDraft, draft_from_payload
from cottonlot.services.pdf_report import render_pdf_report
from cottonlot.services.reports import render_text_report

router = APIRouter()


def calculation_url(calc_id: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/calculations/{calc_id}"


def _calculation_out(calc) -> CalculationOut:
    return CalculationOut(
        id=calc.id,
        title=calc.title,
        created_at=calc.created_at,
        market_quotation=calc.market_quotation,
        quotation_date=calc.quotation_date,
        exchange_rate=calc.exchange_rate,
        batches=[
            BatchOut(
                id=b.id,
                year=b.year,
                batch_code=b.batch_code,
                weight=b.weight,
                bales_count=b.bales_count,
                samples_count=b.samples_count,
                is_complete=b.is_complete,
                samples=[SampleOut.model_validate(s) for s in b.samples],
                stats=BatchStatsOut.model_validate(aggregate_batch(b)),
            )
            for b in calc.batches
        ],
        stats=CalculationStatsOut.model_validate(aggregate_calculation(calc.batches)),
    )


def _draft_sample_out(sample) -> DraftSampleOut:
    priced = sample.pricing if sample.is_confirmed else None
    return DraftSampleOut(
        id=sample.id,
        state=sample.state.value,
        quantity=sample.quantity,
        color_grade=sample.color_grade,
        leaf_grade=sample.leaf_grade,
        staple_length=sample.staple_length,
        market_quotation=priced.market_quotation if priced else None,
        weight=priced.weight if priced else None,
        premium_discount=priced.premium_discount if priced else None,
        unit_price=priced.unit_price if priced else None,
        amount=priced.amount if priced else None,
    )


def _preview(draft: CalculationDraft) -> CalculationPreview:
    problems, _ = draft.save_problems()
    return CalculationPreview(
        title=draft.resolved_title(),
        market_quotation=draft.market_quotation,
        quotation_date=draft.quotation_date,
        exchange_rate=draft.exchange_rate,
        batches=[
            DraftBatchOut(
                id=b.id,
                state=b.state.value,
                year=b.year,
                batch_code=b.batch_code,
                weight=b.weight,
                bales_count=b.bales_count,
                samples_count=b.samples_count,
                max_available=draft.max_available(b.id),
                is_complete=b.is_complete,
                samples=[_draft_sample_out(s) for s in b.samples],
                stats=BatchStatsOut.model_validate(aggregate_batch(b)),
            )
            for b in draft.batches
        ],
        stats=CalculationStatsOut.model_validate(draft.stats()),
        can_save=not problems,
        problems=problems,
    )


# ── Preview ──────────────────────────────────────────────────

@router.post("/preview", response_model=CalculationPreview)
async def preview_calculation(body: CalculationCreate):
    """Price and aggregate a payload exactly as a save would, without storing.

    ``problems`` lists what would block a save; ``can_save`` is true when it
    is empty.
    """
    return _preview(draft_from_payload(body))


# ── Save ─────────────────────────────────────────────────────

@router.post("/", response_model=CalculationSaved, status_code=status.HTTP_201_CREATED)
async def create_calculation(
    body: CalculationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Re-price every sample server-side and save the calculation.

    Fails with 409 SAVE_PRECONDITION_FAILED (naming the offending batches)
    when any batch or sample is still editing or a batch has no samples.
    """
    draft = draft_from_payload(body)
    calc_id = await save_draft(db, draft)
    return CalculationSaved(
        id=calc_id,
        url=calculation_url(calc_id),
        qr_code_url=f"/api/calculations/{calc_id}/qr",
    )


# ── List / detail ────────────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[CalculationSummary])
async def list_saved_calculations(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    total = await count_calculations(db)
    items = await list_calculations(db, limit=limit, offset=offset)
    return PaginatedResponse[CalculationSummary](
        items=[CalculationSummary.model_validate(item) for item in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{calc_id}", response_model=CalculationOut)
async def get_saved_calculation(calc_id: str, db: AsyncSession = Depends(get_db)):
    return _calculation_out(await get_calculation(db, calc_id))


# ── Exports ──────────────────────────────────────────────────

@router.get("/{calc_id}/report.txt", response_class=PlainTextResponse)
async def text_report(calc_id: str, db: AsyncSession = Depends(get_db)):
    calc = await get_calculation(db, calc_id)
    return PlainTextResponse(render_text_report(calc))


@router.get("/{calc_id}/report.pdf")
async def pdf_report(calc_id: str, db: AsyncSession = Depends(get_db)):
    calc = await get_calculation(db, calc_id)
    return Response(
        content=render_pdf_report(calc),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="calculation-{calc_id}.pdf"'},
    )


@router.get("/{calc_id}/qr")
async def calculation_qr(calc_id: str, db: AsyncSession = Depends(get_db)):
    """Return an SVG QR code encoding the calculation's public URL."""
    calc = await get_calculation(db, calc_id)
    qr = segno.make(calculation_url(calc.id))
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=4, dark="#15803d")
    return Response(content=buf.getvalue(), media_type="image/svg+xml")
