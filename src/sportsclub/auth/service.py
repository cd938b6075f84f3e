"""
Account registration.

Creates the unverified account and starts email verification. Sign-in lives
in ``sportsclub.auth.session``; code handling in ``sportsclub.auth.otp``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from sportsclub.auth.otp import utcnow
from sportsclub.auth.password import hash_password, validate_password_strength
from sportsclub.db.models import DEFAULT_AVATAR_URL, DEFAULT_BIO, Account
from sportsclub.errors import AlreadyExists

if TYPE_CHECKING:
    from sportsclub.auth.otp import OtpManager
    from sportsclub.storage import AccountStore

logger = structlog.get_logger()


async def register_account(
    accounts: AccountStore,
    otp: OtpManager,
    *,
    name: str,
    email: str,
    password: str,
    clock: Callable[[], datetime] = utcnow,
) -> Account:
    """
    Register a new account with name + email + password.

    The account is stored unverified together with its first code; delivery
    of that code is fire-and-forget, so a mail outage never fails signup.

    Raises:
        PasswordStrengthError: Password blank or outside the allowed length.
        AlreadyExists: Email already registered (case-insensitive).
    """
    validate_password_strength(password)

    email = email.strip().lower()
    if await accounts.find_by_email(email) is not None:
        logger.info("signup_email_taken", email=email)
        raise AlreadyExists

    now = clock()
    account = Account(
        name=name,
        email=email,
        password_hash=hash_password(password),
        email_verified=False,
        bio=DEFAULT_BIO,
        profile_picture_url=DEFAULT_AVATAR_URL,
        created_at=now,
        updated_at=now,
    )
    # issue() stores the account together with its first code
    await otp.issue(account)
    logger.info("account_created", account_id=account.id, email=email)
    return account
