import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import create_tables, engine
from app.middleware.exceptions import register_exception_handlers
from app.routers import health, membership

logger = logging.getLogger("davel.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup, release the pool on shutdown."""
    await create_tables()
    logger.info("Davel Library API started (%s)", settings.environment)
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Davel Library API stopped")


app = FastAPI(
    title="Davel Library",
    description="Library membership applications",
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
app.include_router(membership.router, prefix="/api/membership", tags=["membership"])
