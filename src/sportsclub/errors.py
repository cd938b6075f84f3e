"""Domain error taxonomy.

Every error carries an HTTP status and a stable ``code`` so clients can branch
on the kind of failure (wrong code vs. expired code vs. already verified)
without parsing messages. The API layer translates these in
``sportsclub.middleware.error_handler``.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 400
    code: str = "bad_request"
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(DomainError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class AlreadyExists(DomainError):
    status_code = 409
    code = "already_exists"
    default_message = "User already exists"


class InvalidCredentials(DomainError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class UnverifiedEmail(DomainError):
    """Sign-in refused until the email address is verified."""

    status_code = 403
    code = "unverified_email"
    default_message = "Please verify your email address first"

    def __init__(self, email: str, message: str | None = None) -> None:
        super().__init__(message)
        self.email = email


class InvalidCode(DomainError):
    code = "invalid_code"
    default_message = "Invalid OTP"


class Expired(DomainError):
    code = "code_expired"
    default_message = "OTP has expired. Please request a new one."


class AlreadyVerified(DomainError):
    code = "already_verified"
    default_message = "Email already verified"


class AlreadyLiked(DomainError):
    code = "already_liked"
    default_message = "Post already liked"


class NotLiked(DomainError):
    code = "not_liked"
    default_message = "Post not liked yet"


class InvalidUpload(DomainError):
    code = "invalid_upload"
    default_message = "Images or videos only"


class RateLimited(DomainError):
    status_code = 429
    code = "rate_limited"
    default_message = "Please wait before requesting another code"


class DeliveryFailed(DomainError):
    status_code = 502
    code = "delivery_failed"
    default_message = "Failed to send verification email"


class StoreError(DomainError):
    """Persistence-layer failure. Never shown to clients verbatim."""

    status_code = 500
    code = "server_error"
    default_message = "Storage failure"
