"""Verification-code delivery dispatch.

``submit`` hands a code to the notifier without waiting for the outcome: the
background dispatcher runs the send (with its retries) as an asyncio task, the
arq dispatcher enqueues a job for the worker process. ``send`` awaits the
outcome and is used where the caller must report a definitive failure.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import structlog

from sportsclub.email.service import EmailService, get_email_service
from sportsclub.errors import RateLimited

if TYPE_CHECKING:
    from arq.connections import ArqRedis

    from sportsclub.config import Settings

logger = structlog.get_logger()

DELIVER_JOB = "deliver_verification_code"


class CodeDelivery(Protocol):
    async def submit(self, to: str, code: str) -> None: ...

    async def send(self, to: str, code: str) -> bool: ...


class BackgroundDelivery:
    """Fire-and-forget delivery on the running event loop."""

    def __init__(self, email_service: EmailService | None = None) -> None:
        self._email_service = email_service
        self._tasks: set[asyncio.Task[None]] = set()
        self.failed_deliveries = 0

    @property
    def email_service(self) -> EmailService:
        return self._email_service or get_email_service()

    async def submit(self, to: str, code: str) -> None:
        task = asyncio.create_task(self._deliver(to, code))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def send(self, to: str, code: str) -> bool:
        return await self.email_service.send_verification_code(to, code)

    async def _deliver(self, to: str, code: str) -> None:
        try:
            sent = await self.send(to, code)
        except RateLimited:
            sent = False
        except Exception:
            sent = False
            logger.exception("verification_code_delivery_crashed", to=to)
        if not sent:
            self.failed_deliveries += 1
            logger.warning(
                "verification_code_undelivered",
                to=to,
                failed_deliveries=self.failed_deliveries,
            )

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


class ArqDelivery:
    """Enqueue delivery jobs for the arq worker (see sportsclub.workers.settings)."""

    def __init__(self, pool: ArqRedis, email_service: EmailService | None = None) -> None:
        self._pool = pool
        self._email_service = email_service

    async def submit(self, to: str, code: str) -> None:
        job = await self._pool.enqueue_job(DELIVER_JOB, to, code)
        logger.info("verification_code_enqueued", to=to, job_id=job.job_id if job else None)

    async def send(self, to: str, code: str) -> bool:
        email_service = self._email_service or get_email_service()
        return await email_service.send_verification_code(to, code)

    async def close(self) -> None:
        await self._pool.aclose()


# Module-level singleton
_delivery: CodeDelivery | None = None


async def init_code_delivery(settings: Settings) -> CodeDelivery:
    """Create the process-wide dispatcher selected by ``otp_delivery_backend``."""
    global _delivery  # noqa: PLW0603
    if settings.otp_delivery_backend == "arq":
        from arq import create_pool
        from arq.connections import RedisSettings

        pool = await create_pool(RedisSettings.from_dsn(settings.arq_redis_url))
        _delivery = ArqDelivery(pool)
    else:
        _delivery = BackgroundDelivery()
    return _delivery


async def close_code_delivery() -> None:
    """Finish in-flight background sends or release the arq pool."""
    global _delivery  # noqa: PLW0603
    if isinstance(_delivery, BackgroundDelivery):
        await _delivery.drain()
    elif isinstance(_delivery, ArqDelivery):
        await _delivery.close()
    _delivery = None


def get_code_delivery() -> CodeDelivery:
    """Get the dispatcher (FastAPI dependency); defaults to background delivery."""
    global _delivery  # noqa: PLW0603
    if _delivery is None:
        _delivery = BackgroundDelivery()
    return _delivery
