"""Signed bearer token issuance and verification."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
import structlog
from pydantic import BaseModel, ValidationError

from review_api.errors import AuthError, AuthErrorCode
from review_api.models.base import CamelModel

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


class TokenClaims(CamelModel):
    """Decoded claims of a verified bearer token."""

    user_id: UUID
    email: str
    is_admin: bool
    jti: str
    iat: int
    exp: int


class IssuedToken(BaseModel):
    """A signed token together with the instant it stops being valid."""

    token: str
    expires_at: datetime


class TokenService:
    """Signs and verifies HS256 JWTs with a process-wide secret.

    Rotating the secret invalidates every outstanding token.
    """

    def __init__(self, secret: str, lifetime: timedelta):
        self._secret = secret
        self.lifetime = lifetime

    def issue(
        self,
        user_id: UUID,
        email: str,
        is_admin: bool,
        now: Optional[datetime] = None,
    ) -> IssuedToken:
        """Create a signed token for a user.

        A random ``jti`` makes tokens unique even when the same user logs in
        twice within one second.

        Args:
            user_id: Owning user
            email: User email claim
            is_admin: Admin flag claim
            now: Issue time (defaults to the current UTC time)

        Returns:
            IssuedToken with the encoded JWT and its expiry
        """
        now = now or datetime.now(timezone.utc)
        expires_at = now + self.lifetime
        payload = {
            "userId": str(user_id),
            "email": email,
            "isAdmin": is_admin,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "access_token_issued",
            user_id=str(user_id),
            expires_at=expires_at.isoformat(),
        )
        return IssuedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry and decode the claims.

        Raises:
            AuthError: TOKEN_EXPIRED for a well-signed expired token,
                INVALID_TOKEN for anything else
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthErrorCode.TOKEN_EXPIRED)
        except jwt.InvalidTokenError as e:
            logger.info("access_token_rejected", reason=str(e))
            raise AuthError(AuthErrorCode.INVALID_TOKEN)

        try:
            return TokenClaims.model_validate(payload)
        except ValidationError:
            logger.info("access_token_rejected", reason="missing or malformed claims")
            raise AuthError(AuthErrorCode.INVALID_TOKEN)
