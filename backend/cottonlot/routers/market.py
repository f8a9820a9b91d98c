"""Market router: quotation, exchange rate and grade reference data.

Endpoints:
    GET    /api/market/defaults        Fallback constants (no network)
    GET    /api/market/quotation       Live A Index, or fallback
    GET    /api/market/exchange-rate   Live USD rate, or fallback
    GET    /api/market/grades          Grade premium/discount table
"""

from fastapi import APIRouter

from cottonlot.schemas.market import GradeEntry, GradeTable, MarketDefaults, MarketValueOut
from cottonlot.services.grading import (
    COLOR_GRADES,
    LEAF_GRADES,
    PREMIUM_DISCOUNT_TABLE,
    STAPLE_LENGTHS,
)
from cottonlot.services.market_data import get_cotton_index, get_exchange_rate, market_defaults

router = APIRouter()


@router.get("/defaults", response_model=MarketDefaults)
async def defaults():
    return MarketDefaults(**market_defaults())


@router.get("/quotation", response_model=MarketValueOut)
async def quotation():
    """Cotlook A Index in US cents per lb.

    Always 200: a failed fetch returns the fallback with ``source="fallback"``.
    """
    return MarketValueOut.model_validate(await get_cotton_index())


@router.get("/exchange-rate", response_model=MarketValueOut)
async def exchange_rate():
    return MarketValueOut.model_validate(await get_exchange_rate())


@router.get("/grades", response_model=GradeTable)
async def grades():
    return GradeTable(
        color_grades=list(COLOR_GRADES),
        leaf_grades=list(LEAF_GRADES),
        staple_lengths=list(STAPLE_LENGTHS),
        entries=[
            GradeEntry(
                color_grade=color,
                leaf_grade=leaf,
                staple_length=staple,
                premium_discount=value / 100,
            )
            for (color, leaf, staple), value in PREMIUM_DISCOUNT_TABLE.items()
        ],
    )
