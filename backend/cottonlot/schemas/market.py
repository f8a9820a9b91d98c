"""Pydantic schemas for market values and the grade table."""

from pydantic import BaseModel


class MarketDefaults(BaseModel):
    market_quotation: float
    exchange_rate: float


class MarketValueOut(BaseModel):
    value: float
    source: str  # live | fallback
    origin: str | None = None
    error: str | None = None

    model_config = {"from_attributes": True}


class GradeEntry(BaseModel):
    color_grade: str
    leaf_grade: int
    staple_length: int
    premium_discount: float  # US cents per lb


class GradeTable(BaseModel):
    color_grades: list[str]
    leaf_grades: list[int]
    staple_lengths: list[int]
    entries: list[GradeEntry]
