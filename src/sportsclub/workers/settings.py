"""arq worker settings module.

Import path for arq CLI: arq sportsclub.workers.settings.WorkerSettings

Used when ``otp_delivery_backend`` is "arq": the API enqueues one
``deliver_verification_code`` job per issued code and this worker sends it
with the email service's retry policy.
"""

from __future__ import annotations

from typing import Any

import structlog
from arq.connections import RedisSettings

from sportsclub.config import get_settings
from sportsclub.email.service import EmailService
from sportsclub.errors import RateLimited
from sportsclub.middleware.logging import setup_logging
from sportsclub.redis_client import close_redis, get_optional_redis, init_redis

logger = structlog.get_logger()


async def startup(ctx: dict[str, Any]) -> None:
    """Set up logging, Redis and the email service on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    ctx["email_service"] = EmailService(redis=get_optional_redis())
    logger.info("delivery_worker_started")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Clean up on worker shutdown."""
    ctx.pop("email_service", None)
    await close_redis()
    logger.info("delivery_worker_stopped")


async def deliver_verification_code(ctx: dict[str, Any], to: str, code: str) -> bool:
    """Send one verification code. Failures are logged, never re-raised."""
    email_service: EmailService = ctx["email_service"]
    try:
        sent = await email_service.send_verification_code(to, code)
    except RateLimited:
        sent = False
    if not sent:
        logger.warning("verification_code_undelivered", to=to, job_id=ctx.get("job_id"))
    return sent


class WorkerSettings:
    """arq worker settings for verification-code delivery."""

    functions = [deliver_verification_code]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    max_jobs = 10
    # 3 attempts with 2s + 4s backoff plus provider timeouts
    job_timeout = 60
    max_tries = 1
