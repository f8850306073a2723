"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select

from trackchain.config import settings
from trackchain.database import async_session
from trackchain.models import LedgerCounter
from trackchain.utils.cache import get_redis
from trackchain.utils.clock import ledger_clock

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness only; touches neither the database nor Redis."""
    return {
        "status": "ok",
        "service": "TrackChain",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check():
    """200 once the ledger tables answer and, if caching is on, Redis does too."""
    checks = {
        "database": "unknown",
        "redis": "disabled" if not settings.cache_enabled else "unknown",
    }
    healthy = True

    try:
        async with async_session() as db:
            counters = await db.scalar(select(func.count()).select_from(LedgerCounter))
        checks["database"] = "ok" if counters else "no id counters (run init-db)"
        healthy = bool(counters)
    except Exception as e:
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    if settings.cache_enabled:
        try:
            redis_client = await get_redis()
            await redis_client.ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {str(e)[:100]}"
            healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "TrackChain",
            "checks": checks,
            "ledger_clock": ledger_clock.last,
        },
    )
