"""Models package exports."""

from review_api.models.auth import (
    Authenticated,
    CurrentUser,
    LoginOutcome,
    TwoFactorRequired,
    TwoFactorSecret,
)
from review_api.models.session import Session, SessionSummary
from review_api.models.user import User, UserRecord

__all__ = [
    "Authenticated",
    "CurrentUser",
    "LoginOutcome",
    "Session",
    "SessionSummary",
    "TwoFactorRequired",
    "TwoFactorSecret",
    "User",
    "UserRecord",
]
