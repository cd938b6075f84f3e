"""Session issuer: turns a verified account into a signed token."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from sportsclub.auth.jwt import create_access_token
from sportsclub.auth.password import check_needs_rehash, hash_password, verify_password
from sportsclub.errors import InvalidCredentials, UnverifiedEmail

if TYPE_CHECKING:
    from sportsclub.db.models import Account
    from sportsclub.storage import AccountStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionGrant:
    token: str
    account: Account


class SessionIssuer:
    def __init__(
        self,
        accounts: AccountStore,
        signer: Callable[[int], str] = create_access_token,
    ) -> None:
        self._accounts = accounts
        self._sign = signer

    async def sign_in(self, email: str, password: str) -> SessionGrant:
        """
        Authenticate with email + password.

        Raises:
            InvalidCredentials: Unknown email or wrong password (same error for both).
            UnverifiedEmail: Password matched but the email is not verified yet.
        """
        account = await self._accounts.find_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("sign_in_rejected", email=email)
            raise InvalidCredentials

        if not account.email_verified:
            raise UnverifiedEmail(account.email)

        if check_needs_rehash(account.password_hash):
            account.password_hash = hash_password(password)
            await self._accounts.save(account)
            logger.info("password_rehashed", account_id=account.id)

        return self._grant(account)

    def issue_after_verification(self, account: Account) -> SessionGrant:
        """Mint a token for an account that just completed email verification."""
        return self._grant(account)

    def _grant(self, account: Account) -> SessionGrant:
        token = self._sign(account.id)
        logger.info("session_issued", account_id=account.id)
        return SessionGrant(token=token, account=account)
