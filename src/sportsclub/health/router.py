"""Root, health, readiness, and version endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from sportsclub.config import get_settings
from sportsclub.database import get_engine
from sportsclub.redis_client import get_optional_redis

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {
        "message": "Backend is running",
        "status": "active",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness() -> dict[str, object]:
    """Readiness probe: checks the configured database and Redis."""
    settings = get_settings()
    checks: dict[str, object] = {}

    if settings.storage_backend == "sql":
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as exc:
            checks["database"] = f"error: {exc}"
    else:
        checks["database"] = "memory"

    redis = get_optional_redis()
    if redis is not None:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"
    else:
        checks["redis"] = "disabled"

    all_ok = all(v in ("ok", "memory", "disabled") for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
