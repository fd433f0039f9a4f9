"""Auth request and response models with validation."""

import re
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from review_api.models.base import CamelModel
from review_api.models.user import User

MIN_PASSWORD_LENGTH = 8
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_new_password(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return v


# ---------------------------------------------------------------------------
# Service-level results
# ---------------------------------------------------------------------------

class CurrentUser(CamelModel):
    """Identity attached to an authenticated request."""

    user_id: UUID
    email: str
    is_admin: bool


class TwoFactorSecret(CamelModel):
    """A freshly generated, not yet persisted TOTP secret."""

    secret: str
    qr_code_url: str


class Authenticated(BaseModel):
    """Login finished: a token was issued and a session created."""

    kind: Literal["authenticated"] = "authenticated"
    token: str
    expires_in: str
    user: User


class TwoFactorRequired(BaseModel):
    """Password accepted, but a TOTP code must be verified before any token exists."""

    kind: Literal["two_factor_required"] = "two_factor_required"
    user_id: UUID


LoginOutcome = Union[Authenticated, TwoFactorRequired]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class LoginRequest(CamelModel):
    """Login credentials."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class VerifyTwoFactorRequest(CamelModel):
    """TOTP code submission.

    With ``secret`` the code confirms a setup and enables 2FA for the caller;
    with ``user_id`` it completes a login that returned ``requiresTwoFactor``.
    """

    token: str = Field(..., min_length=1, max_length=16)
    secret: Optional[str] = Field(default=None, max_length=255)
    user_id: Optional[UUID] = None


class DisableTwoFactorRequest(CamelModel):
    password: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    """Password change for an authenticated user."""

    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def new_password_long_enough(cls, v: str) -> str:
        """Enforce the minimum password length."""
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        return v


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)


class RegisterRequest(CamelModel):
    """New account details.

    Attributes:
        email: Unique login email
        password: Plain-text password (min 8 chars)
        first_name: Given name
        last_name: Family name
        job_title: Optional job title
        is_admin: Whether the account gets administrator rights
    """

    email: str = Field(..., max_length=255)
    password: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=150)
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        """Ensure the email looks like an address."""
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        return _check_new_password(v)


class UpdateUserRequest(CamelModel):
    """Partial user update (admin only). Omitted fields are left unchanged.

    Only ``job_title`` may be cleared with an explicit null.
    """

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=150)
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "is_admin", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class LoginResponse(CamelModel):
    """Successful authentication with a bearer token.

    Attributes:
        success: Always true
        token: Signed bearer token
        expires_in: Token lifetime as configured (e.g. "2h")
        user: The authenticated user
    """

    success: bool = True
    token: str
    expires_in: str
    user: User


class TwoFactorChallengeResponse(CamelModel):
    """Password accepted; the client must submit a TOTP code for ``user_id``."""

    requires_two_factor: bool = True
    user_id: UUID
    message: str = "2FA verification required"


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class SetupTwoFactorResponse(CamelModel):
    success: bool = True
    secret: str
    qr_code_url: str
    message: str = (
        "Scan the QR code with your authenticator app and verify with a code to enable 2FA"
    )


class SessionStatusResponse(CamelModel):
    valid: bool = True
    user: CurrentUser
