"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from sportsclub.auth.router import router as auth_router
from sportsclub.config import get_settings
from sportsclub.database import close_db, init_db
from sportsclub.email.delivery import close_code_delivery, init_code_delivery
from sportsclub.email.service import reset_email_service
from sportsclub.events.router import router as events_router
from sportsclub.health.router import router as health_router
from sportsclub.middleware import setup_middleware
from sportsclub.posts.router import router as posts_router
from sportsclub.redis_client import close_redis, init_redis
from sportsclub.users.router import router as profile_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    if settings.storage_backend == "sql":
        await init_db(settings.database_url, create_all=settings.db_create_all)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    await init_code_delivery(settings)
    logger.info(
        "app_started",
        storage_backend=settings.storage_backend,
        redis=bool(settings.redis_url),
        otp_delivery_backend=settings.otp_delivery_backend,
    )

    yield

    # In-flight code deliveries finish before their connections go away
    await close_code_delivery()
    reset_email_service()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SportsClub API",
        description="Backend API for SportsClub: accounts, events, media posts and profiles",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(posts_router)
    app.include_router(events_router)
    app.include_router(profile_router)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    return app


app = create_app()
