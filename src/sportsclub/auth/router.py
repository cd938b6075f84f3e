"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from sportsclub.auth.otp import OtpManager
from sportsclub.auth.password import PasswordStrengthError
from sportsclub.auth.schemas import (
    AccountSummary,
    ResendVerificationRequest,
    SignedInAccount,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from sportsclub.auth.service import register_account
from sportsclub.auth.session import SessionIssuer
from sportsclub.db.models import Account
from sportsclub.dependencies import get_otp_manager, get_session_issuer, get_stores
from sportsclub.schemas import MessageResponse
from sportsclub.storage import Stores

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _account_summary(account: Account) -> AccountSummary:
    return AccountSummary(
        id=account.id,
        name=account.name,
        email=account.email,
        is_email_verified=account.email_verified,
    )


def _signed_in_account(account: Account) -> SignedInAccount:
    return SignedInAccount(
        id=account.id,
        name=account.name,
        email=account.email,
        is_email_verified=account.email_verified,
        profile_picture_url=account.profile_picture_url,
        bio=account.bio,
    )


@router.post("/signup", response_model=SignUpResponse, status_code=201)
async def signup(
    body: SignUpRequest,
    stores: Stores = Depends(get_stores),
    otp: OtpManager = Depends(get_otp_manager),
) -> SignUpResponse:
    """Register with name + email + password; a verification code is emailed."""
    try:
        account = await register_account(
            stores.accounts,
            otp,
            name=body.name,
            email=body.email,
            password=body.password,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return SignUpResponse(
        success=True,
        msg="Registration successful! Please check your email for the verification code.",
        user_id=account.id,
    )


@router.post("/signin", response_model=SignInResponse)
async def signin(
    body: SignInRequest,
    sessions: SessionIssuer = Depends(get_session_issuer),
) -> SignInResponse:
    """Sign in with email + password. Unverified accounts get 403."""
    grant = await sessions.sign_in(body.email, body.password)
    return SignInResponse(token=grant.token, user=_signed_in_account(grant.account))


@router.post("/verify-email", response_model=VerifyEmailResponse)
async def verify_email(
    body: VerifyEmailRequest,
    otp: OtpManager = Depends(get_otp_manager),
) -> VerifyEmailResponse:
    """Verify the email address with the emailed code and sign in."""
    grant = await otp.verify(body.email, body.otp)
    return VerifyEmailResponse(
        msg="Email verified successfully!",
        token=grant.token,
        user=_account_summary(grant.account),
    )


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    body: ResendVerificationRequest,
    otp: OtpManager = Depends(get_otp_manager),
) -> MessageResponse:
    """Replace the pending code and email it again."""
    await otp.resend(body.email)
    return MessageResponse(msg="Verification code has been resent to your email")
