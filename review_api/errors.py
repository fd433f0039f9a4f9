"""Failure kinds raised by the auth core and their HTTP mapping."""

from enum import Enum
from typing import Optional


class AuthErrorCode(str, Enum):
    """Every failure the auth core and request gate can signal."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_2FA_TOKEN = "INVALID_2FA_TOKEN"
    INVALID_2FA_SETUP = "INVALID_2FA_SETUP"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_CODES: dict[AuthErrorCode, int] = {
    AuthErrorCode.INVALID_INPUT: 400,
    AuthErrorCode.INVALID_CREDENTIALS: 401,
    AuthErrorCode.ACCOUNT_INACTIVE: 403,
    AuthErrorCode.INVALID_PASSWORD: 401,
    AuthErrorCode.INVALID_2FA_TOKEN: 401,
    AuthErrorCode.INVALID_2FA_SETUP: 400,
    AuthErrorCode.USER_NOT_FOUND: 404,
    AuthErrorCode.USER_ALREADY_EXISTS: 409,
    AuthErrorCode.UNAUTHORIZED: 401,
    AuthErrorCode.FORBIDDEN: 403,
    AuthErrorCode.TOKEN_EXPIRED: 401,
    AuthErrorCode.INVALID_TOKEN: 401,
    AuthErrorCode.SESSION_EXPIRED: 401,
    AuthErrorCode.RATE_LIMIT_EXCEEDED: 429,
    AuthErrorCode.NOT_FOUND: 404,
    AuthErrorCode.INTERNAL_ERROR: 500,
}

DEFAULT_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_INPUT: "Request validation failed",
    AuthErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    AuthErrorCode.ACCOUNT_INACTIVE: "Your account has been deactivated. Please contact an administrator.",
    AuthErrorCode.INVALID_PASSWORD: "Incorrect password",
    AuthErrorCode.INVALID_2FA_TOKEN: "Invalid 2FA token. Please try again.",
    AuthErrorCode.INVALID_2FA_SETUP: "2FA is not properly set up for this user",
    AuthErrorCode.USER_NOT_FOUND: "User not found",
    AuthErrorCode.USER_ALREADY_EXISTS: "A user with this email already exists",
    AuthErrorCode.UNAUTHORIZED: "Authentication required",
    AuthErrorCode.FORBIDDEN: "Admin privileges required",
    AuthErrorCode.TOKEN_EXPIRED: "Authentication token has expired",
    AuthErrorCode.INVALID_TOKEN: "Invalid authentication token",
    AuthErrorCode.SESSION_EXPIRED: "Session has expired. Please log in again.",
    AuthErrorCode.RATE_LIMIT_EXCEEDED: "Too many attempts. Please try again later.",
    AuthErrorCode.NOT_FOUND: "The requested resource was not found",
    AuthErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}


class AuthError(Exception):
    """A named, expected failure of an auth operation.

    The service layer raises it; only the HTTP layer turns it into a status
    code and an ``{"error": {"code", "message"}}`` body.
    """

    def __init__(self, code: AuthErrorCode, message: Optional[str] = None):
        self.code = code
        self.message = message or DEFAULT_MESSAGES[code]
        super().__init__(f"{code.value}: {self.message}")

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.code]

    def to_payload(self) -> dict:
        """Serialize to the JSON error envelope."""
        return {"error": {"code": self.code.value, "message": self.message}}
