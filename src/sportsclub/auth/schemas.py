"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator

from sportsclub.schemas import CamelModel

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class _EmailRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class SignUpRequest(_EmailRequest):
    """Email registration request. All fields are required."""

    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            msg = "Name cannot be blank"
            raise ValueError(msg)
        return v.strip()


class SignInRequest(_EmailRequest):
    password: str = Field(..., min_length=1, max_length=128)


class VerifyEmailRequest(_EmailRequest):
    """Submit the 6-digit code. The code is compared verbatim."""

    otp: str = Field(..., max_length=32)


class ResendVerificationRequest(_EmailRequest):
    pass


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SignUpResponse(CamelModel):
    success: bool
    msg: str
    user_id: int


class AccountSummary(CamelModel):
    id: int
    name: str
    email: str
    is_email_verified: bool


class SignedInAccount(AccountSummary):
    profile_picture_url: str
    bio: str


class SignInResponse(CamelModel):
    token: str
    user: SignedInAccount


class VerifyEmailResponse(CamelModel):
    msg: str
    token: str
    user: AccountSummary
