"""Services package exports."""

from review_api.services.auth_service import AuthService
from review_api.services.logging_service import configure_logging, get_logger
from review_api.services.password_hasher import PasswordHasher
from review_api.services.session_service import SessionService
from review_api.services.token_service import TokenService
from review_api.services.totp_service import TotpService
from review_api.services.user_service import UserService

__all__ = [
    "AuthService",
    "PasswordHasher",
    "SessionService",
    "TokenService",
    "TotpService",
    "UserService",
    "configure_logging",
    "get_logger",
]
