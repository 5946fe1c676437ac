"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime

import redis.asyncio as redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.database import engine

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight liveness check, no dependencies touched."""
    return {
        "status": "ok",
        "service": "Davel Library",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check(include_redis: bool = False):
    """Readiness: the database always, Redis only when asked.

    Redis backs the hosted draft store only, so an API that never serves
    drafts stays ready without it.
    """
    checks = {"service": "ok", "database": "unknown"}
    overall_healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        checks["database"] = f"error: {str(e)[:100]}"
        overall_healthy = False

    if include_redis:
        client = redis.from_url(settings.redis_url, decode_responses=True)
        try:
            await client.ping()
            checks["redis"] = "ok"
        except (redis.RedisError, OSError) as e:
            checks["redis"] = f"error: {str(e)[:100]}"
            overall_healthy = False
        finally:
            await client.aclose()

    return JSONResponse(
        status_code=status.HTTP_200_OK if overall_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if overall_healthy else "unhealthy",
            "service": "Davel Library",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
