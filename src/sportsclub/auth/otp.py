"""
Email verification codes.

An account holds at most one pending code. ``issue`` stores a fresh code and
its expiry on the account and hands delivery off without waiting;
``verify`` consumes the code; ``resend`` replaces it and waits for delivery.

Verification checks run in a fixed order: unknown account, already verified,
wrong code, expired code. Clients rely on that order to decide between
showing the resend button and redirecting to sign-in.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from redis.exceptions import RedisError

from sportsclub.config import get_settings
from sportsclub.errors import (
    AlreadyVerified,
    DeliveryFailed,
    Expired,
    InvalidCode,
    NotFound,
    RateLimited,
)

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from sportsclub.auth.session import SessionGrant, SessionIssuer
    from sportsclub.db.models import Account
    from sportsclub.email.delivery import CodeDelivery
    from sportsclub.storage import AccountStore

logger = structlog.get_logger()

CODE_FLOOR = 100_000
CODE_SPAN = 900_000  # 100000..999999


def generate_code() -> str:
    """Draw a 6-digit code uniformly from 100000-999999."""
    return str(CODE_FLOOR + secrets.randbelow(CODE_SPAN))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class IssuedCode:
    code: str
    expires_at: datetime


class OtpManager:
    def __init__(
        self,
        accounts: AccountStore,
        delivery: CodeDelivery,
        sessions: SessionIssuer,
        *,
        redis: Redis | None = None,
        ttl: timedelta | None = None,
        resend_cooldown_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        settings = get_settings()
        self._accounts = accounts
        self._delivery = delivery
        self._sessions = sessions
        self._redis = redis
        self.ttl = ttl if ttl is not None else timedelta(minutes=settings.otp_ttl_minutes)
        self.resend_cooldown_seconds = (
            resend_cooldown_seconds
            if resend_cooldown_seconds is not None
            else settings.otp_resend_cooldown_seconds
        )
        self._clock = clock
        self._code_factory = code_factory

    def _assign(self, account: Account) -> IssuedCode:
        now = self._clock()
        issued = IssuedCode(code=self._code_factory(), expires_at=now + self.ttl)
        account.pending_code = issued.code
        account.code_expires_at = issued.expires_at
        account.updated_at = now
        return issued

    async def issue(self, account: Account) -> IssuedCode:
        """Store a new code on the account and submit it for delivery.

        Returns as soon as delivery is submitted. A failure to deliver, or even
        to submit, is logged and never raised: the user can still ask for a
        resend.
        """
        issued = self._assign(account)
        await self._accounts.save(account)
        try:
            await self._delivery.submit(account.email, issued.code)
        except Exception:
            logger.exception("verification_code_submit_failed", account_id=account.id)
        logger.info("verification_code_issued", account_id=account.id, expires_at=issued.expires_at.isoformat())
        return issued

    async def verify(self, email: str, code: str) -> SessionGrant:
        """
        Consume a verification code and sign the account in.

        Raises:
            NotFound: No account for this email.
            AlreadyVerified: The email was verified before.
            InvalidCode: The code does not match the pending code exactly.
            Expired: The code matched but its expiry has passed.
        """
        account = await self._accounts.find_by_email(email)
        if account is None:
            raise NotFound("User not found")
        if account.email_verified:
            raise AlreadyVerified
        if account.pending_code is None or code != account.pending_code:
            logger.info("verification_code_mismatch", account_id=account.id)
            raise InvalidCode
        if account.code_expires_at is None or self._clock() > _as_utc(account.code_expires_at):
            logger.info("verification_code_expired", account_id=account.id)
            raise Expired

        account.email_verified = True
        account.pending_code = None
        account.code_expires_at = None
        account.updated_at = self._clock()
        await self._accounts.save(account)
        logger.info("email_verified", account_id=account.id)
        return self._sessions.issue_after_verification(account)

    async def resend(self, email: str) -> IssuedCode:
        """
        Replace the pending code and deliver it, waiting for the outcome.

        Raises:
            NotFound: No account for this email.
            AlreadyVerified: Nothing to resend; the account is left untouched.
            RateLimited: A code was resent to this account within the cooldown,
                or the address has used up its hourly email quota.
            DeliveryFailed: The notifier gave up on the new code.
        """
        account = await self._accounts.find_by_email(email)
        if account is None:
            raise NotFound("User not found")
        if account.email_verified:
            raise AlreadyVerified("Email is already verified")

        cooldown_key = await self._claim_resend_slot(account.id)
        try:
            issued = self._assign(account)
            await self._accounts.save(account)
            if not await self._delivery.send(account.email, issued.code):
                logger.error("verification_code_resend_failed", account_id=account.id)
                raise DeliveryFailed
        except BaseException:
            # Nothing went out: the user may retry at once
            await self._release_resend_slot(cooldown_key)
            raise
        logger.info("verification_code_resent", account_id=account.id)
        return issued

    async def _claim_resend_slot(self, account_id: int) -> str | None:
        """Start the resend cooldown, or raise RateLimited if it is running."""
        if self._redis is None or self.resend_cooldown_seconds <= 0:
            return None
        key = f"otp_resend_cooldown:{account_id}"
        claimed = await self._redis.set(key, "1", ex=self.resend_cooldown_seconds, nx=True)
        if not claimed:
            raise RateLimited
        return key

    async def _release_resend_slot(self, key: str | None) -> None:
        if key is None or self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except RedisError as e:
            logger.warning("resend_cooldown_release_failed", key=key, error=str(e))
