"""Tests for sign-in and session issuing."""

import pytest

from sportsclub.auth.jwt import verify_token
from sportsclub.auth.password import hash_password
from sportsclub.auth.session import SessionIssuer
from sportsclub.db.models import Account
from sportsclub.errors import InvalidCredentials, UnverifiedEmail
from tests.conftest import PASSWORD, T0


async def _store_account(stores, *, verified: bool, email: str = "alice@example.com") -> Account:
    account = Account(
        name="Alice",
        email=email,
        password_hash=hash_password(PASSWORD),
        email_verified=verified,
        bio="",
        profile_picture_url="",
        created_at=T0,
        updated_at=T0,
    )
    return await stores.accounts.save(account)


class TestSignIn:
    async def test_verified_account_gets_token(self, stores, sessions):
        account = await _store_account(stores, verified=True)

        grant = await sessions.sign_in("alice@example.com", PASSWORD)

        assert grant.account is account
        assert verify_token(grant.token)["sub"] == str(account.id)

    async def test_unknown_email_and_wrong_password_look_the_same(self, stores, sessions):
        await _store_account(stores, verified=True)

        with pytest.raises(InvalidCredentials) as unknown:
            await sessions.sign_in("nobody@example.com", PASSWORD)
        with pytest.raises(InvalidCredentials) as wrong:
            await sessions.sign_in("alice@example.com", "wrong-password")

        assert unknown.value.message == wrong.value.message

    async def test_unverified_account_refused_after_password_check(self, stores, sessions):
        await _store_account(stores, verified=False)

        with pytest.raises(UnverifiedEmail) as exc_info:
            await sessions.sign_in("alice@example.com", PASSWORD)
        assert exc_info.value.email == "alice@example.com"

        # A wrong password never reveals the verification state
        with pytest.raises(InvalidCredentials):
            await sessions.sign_in("alice@example.com", "wrong-password")

    async def test_outdated_hash_is_upgraded(self, stores, sessions, monkeypatch):
        account = await _store_account(stores, verified=True)
        old_hash = account.password_hash
        monkeypatch.setattr("sportsclub.auth.session.check_needs_rehash", lambda _h: True)

        await sessions.sign_in("alice@example.com", PASSWORD)

        assert account.password_hash != old_hash

    async def test_custom_signer(self, stores):
        account = await _store_account(stores, verified=True)
        issuer = SessionIssuer(stores.accounts, signer=lambda account_id: f"token-{account_id}")

        grant = issuer.issue_after_verification(account)

        assert grant.token == f"token-{account.id}"
