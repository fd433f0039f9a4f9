"""FastAPI dependencies for authentication and authorization."""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from review_api.config import SessionVerification, Settings, get_settings
from review_api.errors import AuthError, AuthErrorCode
from review_api.models.auth import CurrentUser
from review_api.services.auth_service import AuthService
from review_api.services.rate_limiter import LoginRateLimiter
from review_api.services.session_service import SessionService
from review_api.services.token_service import TokenService
from review_api.services.user_service import UserService

logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class RequestGate:
    """Verifies a bearer token and cross-checks it against live sessions.

    ``verification`` is fixed at construction. ``TOKEN_ONLY`` skips the session
    lookup and only checks that the owner exists and is active; it exists for
    test harnesses and is refused in production by ``Settings``.
    """

    def __init__(
        self,
        tokens: TokenService,
        sessions: SessionService,
        users: UserService,
        verification: SessionVerification = SessionVerification.STRICT,
    ):
        self.tokens = tokens
        self.sessions = sessions
        self.users = users
        self.verification = verification

    async def authenticate(self, token: str) -> CurrentUser:
        """Resolve a bearer token to the identity it grants.

        Args:
            token: Raw bearer token

        Returns:
            CurrentUser built from the token claims

        Raises:
            AuthError: INVALID_TOKEN, TOKEN_EXPIRED, SESSION_EXPIRED or
                ACCOUNT_INACTIVE
        """
        claims = self.tokens.verify(token)

        if self.verification is SessionVerification.TOKEN_ONLY:
            user = await self.users.get_by_id(claims.user_id)
            if user is None or not user.is_active:
                raise AuthError(AuthErrorCode.INVALID_TOKEN)
        else:
            session = await self.sessions.find_by_token(token)
            if session is None:
                raise AuthError(AuthErrorCode.SESSION_EXPIRED)

            user = await self.users.get_by_id(session.user_id)
            if user is None:
                raise AuthError(AuthErrorCode.SESSION_EXPIRED)
            if not user.is_active:
                raise AuthError(
                    AuthErrorCode.ACCOUNT_INACTIVE,
                    "Your account has been deactivated",
                )

            await self.sessions.touch(session.session_id)

        return CurrentUser(
            user_id=claims.user_id,
            email=claims.email,
            is_admin=claims.is_admin,
        )


def build_request_gate(settings: Settings) -> RequestGate:
    """Construct the gate once at startup from configuration."""
    return RequestGate(
        tokens=TokenService(secret=settings.jwt_secret, lifetime=settings.token_lifetime),
        sessions=SessionService(),
        users=UserService(),
        verification=settings.session_verification,
    )


def get_request_gate(request: Request) -> RequestGate:
    """Return the gate installed on the application at startup."""
    gate = getattr(request.app.state, "request_gate", None)
    if gate is None:
        gate = build_request_gate(get_settings())
        request.app.state.request_gate = gate
    return gate


def get_auth_service() -> AuthService:
    return AuthService()


def get_login_rate_limiter() -> LoginRateLimiter:
    return LoginRateLimiter()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Extract the raw bearer token from the Authorization header.

    Raises:
        AuthError: UNAUTHORIZED if the header is missing or not a bearer token
    """
    if credentials is None or not credentials.credentials:
        raise AuthError(
            AuthErrorCode.UNAUTHORIZED,
            "No authentication token provided",
        )
    return credentials.credentials


async def get_current_user(
    request: Request,
    token: str = Depends(get_bearer_token),
    gate: RequestGate = Depends(get_request_gate),
) -> CurrentUser:
    """Authenticate the request and attach the identity to ``request.state.user``.

    Raises:
        AuthError: UNAUTHORIZED, INVALID_TOKEN, TOKEN_EXPIRED,
            SESSION_EXPIRED or ACCOUNT_INACTIVE
    """
    user = await gate.authenticate(token)
    request.state.user = user
    return user


async def get_optional_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Raw bearer token if one was sent, unverified.

    For routes where only some request shapes need an identity; the route
    decides whether to run the gate.
    """
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


async def require_admin(
    current_user: Optional[CurrentUser] = Depends(get_current_user),
) -> CurrentUser:
    """Require the current user to have admin privileges.

    Raises:
        AuthError: UNAUTHORIZED without an identity, FORBIDDEN for non-admins
    """
    if current_user is None:
        raise AuthError(AuthErrorCode.UNAUTHORIZED)

    if not current_user.is_admin:
        logger.info("admin_access_denied", user_id=str(current_user.user_id))
        raise AuthError(AuthErrorCode.FORBIDDEN)

    return current_user
