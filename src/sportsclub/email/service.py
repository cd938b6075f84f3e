"""
Email service with provider abstraction.

Supports SMTP (default), the Resend API, and a console provider for local
development. Provider is selected via configuration.

Providers raise ``EmailDeliveryError`` classified as terminal or retryable;
``EmailService`` owns the retry policy: up to ``email_max_attempts`` attempts
with exponential backoff (2s, 4s, ...), stopping at once on a terminal error
such as an unverified or rejected sender.
"""

from __future__ import annotations

import asyncio
import hashlib
import ssl
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING

import structlog

from sportsclub.config import get_settings
from sportsclub.email.templates import verification_code_email
from sportsclub.errors import RateLimited
from sportsclub.redis_client import get_optional_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()

# SMTP reply codes meaning the sender itself was refused.
_TERMINAL_SMTP_CODES = frozenset({550, 553, 554})


class EmailDeliveryError(Exception):
    """A provider failed to hand the message over."""

    def __init__(self, message: str, *, terminal: bool = False) -> None:
        super().__init__(message)
        self.terminal = terminal


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name = "base"

    @abstractmethod
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send an email. Raises EmailDeliveryError on failure."""
        ...


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send via SMTP."""
        import aiosmtplib

        if not self.from_address:
            msg = "No sender address configured"
            raise EmailDeliveryError(msg, terminal=True)

        msg = MIMEMultipart("alternative")
        msg["From"] = f'"{self.from_name}" <{self.from_address}>'
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            tls_context = ssl.create_default_context() if self.use_tls else None
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=tls_context,
            )
        except aiosmtplib.SMTPResponseException as e:
            terminal = e.code in _TERMINAL_SMTP_CODES or "sender identity" in e.message.lower()
            raise EmailDeliveryError(f"SMTP {e.code}: {e.message}", terminal=terminal) from e
        except (aiosmtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(str(e)) from e


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    name = "resend"

    def __init__(self, api_key: str, from_address: str, from_name: str) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        """Send via Resend HTTP API."""
        import httpx

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self.from_name} <{self.from_address}>",
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            # 429 and 5xx are transient; any other 4xx means the request or sender was rejected
            terminal = status != 429 and status < 500
            raise EmailDeliveryError(f"Resend HTTP {status}", terminal=terminal) from e
        except httpx.HTTPError as e:
            raise EmailDeliveryError(str(e)) from e


class ConsoleProvider(BaseEmailProvider):
    """Logs emails instead of sending them (local development)."""

    name = "console"

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> None:
        logger.info("email_console", to=to_email, subject=subject, body=text_body)


def _create_provider() -> BaseEmailProvider:
    """Create email provider based on configuration."""
    settings = get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    if provider_name == "console":
        return ConsoleProvider()
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    """
    High-level email service for SportsClub.

    Handles per-recipient rate limiting, retries and template rendering.
    """

    def __init__(
        self,
        provider: BaseEmailProvider | None = None,
        redis: Redis | None = None,
        *,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self.provider = provider or _create_provider()
        self._redis = redis
        self.max_attempts = max_attempts if max_attempts is not None else settings.email_max_attempts
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.email_retry_backoff_seconds
        )
        self.rate_limit_max = settings.email_rate_limit_per_hour
        self._sleep = sleep

    RATE_LIMIT_WINDOW = 3600

    async def _check_rate_limit(self, email: str) -> bool:
        """Check if we can send another email to this address."""
        if self._redis is None:
            return True
        key = f"email_rate:{hashlib.sha256(email.lower().encode()).hexdigest()}"
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        return count <= self.rate_limit_max

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """
        Send an email with rate limiting and retries.

        Returns True if sent, False if the sender was rejected or attempts ran out.

        Raises:
            RateLimited: The recipient has used up its hourly quota.
        """
        if not await self._check_rate_limit(to):
            logger.warning("email_rate_limited", to=to, subject=subject)
            raise RateLimited("Too many emails sent to this address. Try again later")

        provider = self.provider.name
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.provider.send(to, subject, html_body, text_body)
            except EmailDeliveryError as e:
                if e.terminal:
                    logger.error("email_sender_rejected", to=to, provider=provider, error=str(e))
                    return False
                if attempt == self.max_attempts:
                    break
                delay = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "email_send_retry",
                    to=to,
                    provider=provider,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    retry_in=delay,
                    error=str(e),
                )
                await self._sleep(delay)
            else:
                logger.info("email_sent", to=to, subject=subject, provider=provider, attempt=attempt)
                return True

        logger.error("email_send_failed", to=to, provider=provider, attempts=self.max_attempts)
        return False

    async def send_verification_code(self, to: str, code: str) -> bool:
        """Render the verification-code template and send it."""
        settings = get_settings()
        subject, html_body, text_body = verification_code_email(code, settings.otp_ttl_minutes)
        return await self.send_email(to, subject, html_body, text_body)


# Module-level singleton
_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService(redis=get_optional_redis())
    return _email_service


def reset_email_service() -> None:
    """Reset the email service singleton (for testing)."""
    global _email_service  # noqa: PLW0603
    _email_service = None
