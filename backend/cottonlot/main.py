import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cottonlot.config import settings
from cottonlot.middleware.exceptions import register_exception_handlers
from cottonlot.routers import calculations, health, market
from cottonlot.services.startup import lifespan

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="CottonLot",
    description="Cotton batch and sample pricing",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(market.router, prefix="/api/market", tags=["market"])
app.include_router(calculations.router, prefix="/api/calculations", tags=["calculations"])
