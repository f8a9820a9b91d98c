"""Pydantic schemas for calculations, batches and samples."""

import re
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from cottonlot.services.grading import ColorGrade

BATCH_CODE_RE = re.compile(r"^\d{3}/\d{2}$")

LeafGrade = Literal[1, 2, 3, 4, 5, 6, 7]
StapleLength = Literal[32, 33, 34, 35, 36, 37]
EntryStateName = Literal["editing", "confirmed"]


# ── Field validation for draft entries ───────────────────────
# Applied when a batch or sample is confirmed, not when the payload arrives,
# so that an editing entry may hold incomplete values.

class BatchFields(BaseModel):
    year: int
    batch_code: str
    weight: float = Field(..., gt=0)
    bales_count: int = Field(..., gt=0)
    samples_count: int = Field(..., gt=0)

    @field_validator("year")
    @classmethod
    def year_in_range(cls, v: int) -> int:
        if v < 1900 or v > date.today().year:
            raise ValueError(f"Year must be between 1900 and {date.today().year}")
        return v

    @field_validator("batch_code")
    @classmethod
    def batch_code_format(cls, v: str) -> str:
        v = v.strip()
        if not BATCH_CODE_RE.match(v):
            raise ValueError("Batch code must have the format 000/00")
        return v


class SampleFields(BaseModel):
    quantity: int = Field(..., gt=0)
    color_grade: ColorGrade
    leaf_grade: LeafGrade
    staple_length: StapleLength


class SampleQuantity(BaseModel):
    """Checked as soon as a sample is added, editing or not."""
    quantity: int = Field(..., gt=0)


# ── Request payloads ─────────────────────────────────────────

class SampleCreate(BaseModel):
    quantity: int | None = Field(None, gt=0)
    color_grade: str | None = None
    leaf_grade: int | None = None
    staple_length: int | None = None
    state: EntryStateName = "confirmed"


class BatchCreate(BaseModel):
    year: int | None = None
    batch_code: str | None = None
    weight: float | None = None
    bales_count: int | None = None
    samples_count: int | None = None
    state: EntryStateName = "confirmed"
    samples: list[SampleCreate] = Field(default_factory=list)


class CalculationCreate(BaseModel):
    """Payload for POST /api/calculations and /api/calculations/preview.

    Derived sample values are never accepted from the client; every sample
    is re-priced server-side against ``market_quotation``.
    """
    title: str | None = Field(None, max_length=255)
    market_quotation: float = Field(..., gt=0)
    quotation_date: date | None = None
    exchange_rate: float | None = Field(None, gt=0)
    batches: list[BatchCreate] = Field(default_factory=list)


# ── Statistics ───────────────────────────────────────────────

class BatchStatsOut(BaseModel):
    total_samples: int
    total_weight: float
    total_amount: float
    avg_premium_discount: float
    avg_price: float

    model_config = {"from_attributes": True}


class CalculationStatsOut(BaseModel):
    total_batches: int
    total_weight: float
    total_bales: int
    total_samples: int
    total_amount: float
    avg_price: float

    model_config = {"from_attributes": True}


# ── Persisted calculation ────────────────────────────────────

class SampleOut(BaseModel):
    id: str
    quantity: int
    color_grade: str
    leaf_grade: int
    staple_length: int
    market_quotation: float
    weight: float
    premium_discount: float
    unit_price: float
    amount: float

    model_config = {"from_attributes": True}


class BatchOut(BaseModel):
    id: str
    year: int
    batch_code: str
    weight: float
    bales_count: int
    samples_count: int
    is_complete: bool
    samples: list[SampleOut]
    stats: BatchStatsOut

    model_config = {"from_attributes": True}


class CalculationOut(BaseModel):
    id: str
    title: str
    created_at: datetime
    market_quotation: float
    quotation_date: date | None
    exchange_rate: float | None
    batches: list[BatchOut]
    stats: CalculationStatsOut

    model_config = {"from_attributes": True}


class CalculationSummary(BaseModel):
    id: str
    title: str
    created_at: datetime
    market_quotation: float
    quotation_date: date | None = None
    exchange_rate: float | None = None
    batch_count: int = 0

    model_config = {"from_attributes": True}


class CalculationSaved(BaseModel):
    """Response from POST /api/calculations."""
    id: str
    url: str
    qr_code_url: str


# ── Draft preview ────────────────────────────────────────────

class DraftSampleOut(BaseModel):
    id: str
    state: EntryStateName
    quantity: int | None
    color_grade: str | None
    leaf_grade: int | None
    staple_length: int | None
    # Derived values; null while the sample is editing
    market_quotation: float | None = None
    weight: float | None = None
    premium_discount: float | None = None
    unit_price: float | None = None
    amount: float | None = None


class DraftBatchOut(BaseModel):
    id: str
    state: EntryStateName
    year: int | None
    batch_code: str | None
    weight: float | None
    bales_count: int | None
    samples_count: int | None
    max_available: int
    is_complete: bool
    samples: list[DraftSampleOut]
    stats: BatchStatsOut


class CalculationPreview(BaseModel):
    title: str
    market_quotation: float
    quotation_date: date | None
    exchange_rate: float | None
    batches: list[DraftBatchOut]
    stats: CalculationStatsOut
    can_save: bool
    problems: list[str]
