"""Application lifespan.

Creates any missing tables on startup so a fresh database works without
running Alembic first.  Production deployments still migrate with Alembic;
``create_all`` only fills gaps.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import cottonlot.models  # noqa: F401  registers every table on Base.metadata
from cottonlot.config import settings
from cottonlot.database import Base, engine
from cottonlot.services.grading import PREMIUM_DISCOUNT_TABLE

logger = logging.getLogger("cottonlot.startup")


async def _ensure_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("Ensured tables: %s", ", ".join(sorted(Base.metadata.tables)))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: make sure the schema exists before serving."""
    await _ensure_tables()
    logger.info(
        "CottonLot started (%s); grade table has %d entries, fallback A Index %.2f",
        settings.environment,
        len(PREMIUM_DISCOUNT_TABLE),
        settings.fallback_quotation,
    )
    yield
    await engine.dispose()
