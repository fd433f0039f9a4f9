"""Authentication API endpoints."""

from typing import Optional, Union

import structlog
from fastapi import APIRouter, Depends, Request

from review_api.api.dependencies import (
    RequestGate,
    client_ip,
    get_auth_service,
    get_bearer_token,
    get_current_user,
    get_login_rate_limiter,
    get_optional_bearer_token,
    get_request_gate,
)
from review_api.errors import AuthError, AuthErrorCode
from review_api.models.auth import (
    Authenticated,
    CurrentUser,
    DisableTwoFactorRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    SessionStatusResponse,
    SetupTwoFactorResponse,
    TwoFactorChallengeResponse,
    VerifyTwoFactorRequest,
)
from review_api.models.session import SessionSummary
from review_api.services.auth_service import AuthService
from review_api.services.rate_limiter import LoginRateLimiter

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _login_response(result: Authenticated) -> LoginResponse:
    return LoginResponse(
        token=result.token,
        expires_in=result.expires_in,
        user=result.user,
    )


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
) -> Union[LoginResponse, TwoFactorChallengeResponse]:
    """Login with email and password.

    Returns:
        LoginResponse with a bearer token, or TwoFactorChallengeResponse when
        the account has 2FA enabled (no token is issued in that case)

    Raises:
        AuthError: INVALID_CREDENTIALS (401), ACCOUNT_INACTIVE (403),
            RATE_LIMIT_EXCEEDED (429)
    """
    ip_address = client_ip(request)
    await limiter.enforce(ip_address or "unknown")

    outcome = await auth_service.authenticate(
        body.email,
        body.password,
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )

    if isinstance(outcome, Authenticated):
        return _login_response(outcome)

    return TwoFactorChallengeResponse(user_id=outcome.user_id)


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    gate: RequestGate = Depends(get_request_gate),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Invalidate the session of the presented token.

    Only the token's signature and expiry are checked, so logging out with a
    token whose session is already gone still succeeds.
    """
    gate.tokens.verify(token)
    await auth_service.logout(token)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordRequest) -> MessageResponse:
    """Acknowledge a reset request without revealing whether the email exists.

    No reset link is sent; email delivery is not part of this service.
    """
    logger.info("password_reset_requested")
    return MessageResponse(
        message="If an account with that email exists, a password reset link has been sent.",
    )


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the caller's password and log out every device.

    Raises:
        AuthError: INVALID_PASSWORD (401), USER_NOT_FOUND (404)
    """
    try:
        await auth_service.change_password(
            current_user.user_id,
            body.current_password,
            body.new_password,
        )
    except AuthError as e:
        if e.code is AuthErrorCode.INVALID_PASSWORD:
            raise AuthError(e.code, "Current password is incorrect")
        raise

    return MessageResponse(
        message="Password changed successfully. Please log in again with your new password.",
    )


@router.post("/setup-2fa")
async def setup_two_factor(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> SetupTwoFactorResponse:
    """Generate a TOTP secret and provisioning URL. Nothing is saved until verified."""
    generated = auth_service.generate_two_factor_secret(
        current_user.user_id,
        current_user.email,
    )
    return SetupTwoFactorResponse(
        secret=generated.secret,
        qr_code_url=generated.qr_code_url,
    )


@router.post("/verify-2fa")
async def verify_two_factor(
    body: VerifyTwoFactorRequest,
    request: Request,
    token: Optional[str] = Depends(get_optional_bearer_token),
    gate: RequestGate = Depends(get_request_gate),
    auth_service: AuthService = Depends(get_auth_service),
    limiter: LoginRateLimiter = Depends(get_login_rate_limiter),
) -> Union[MessageResponse, LoginResponse]:
    """Verify a TOTP code.

    With ``secret`` (authenticated caller) the code confirms setup and enables
    2FA. With ``userId`` the code completes a login that required 2FA; any
    Authorization header is ignored on that path.

    Raises:
        AuthError: INVALID_2FA_TOKEN (401), INVALID_2FA_SETUP (400),
            INVALID_INPUT (400), UNAUTHORIZED (401), ACCOUNT_INACTIVE (403)
    """
    if body.secret:
        if token is None:
            raise AuthError(
                AuthErrorCode.UNAUTHORIZED,
                "You must be logged in to enable 2FA",
            )
        current_user = await gate.authenticate(token)
        request.state.user = current_user
        await auth_service.enable_two_factor(current_user.user_id, body.secret, body.token)
        return MessageResponse(message="2FA has been enabled successfully")

    if body.user_id:
        ip_address = client_ip(request)
        await limiter.enforce(ip_address or "unknown")

        result = await auth_service.verify_two_factor_and_authenticate(
            body.user_id,
            body.token,
            ip_address=ip_address,
            user_agent=request.headers.get("user-agent"),
        )
        return _login_response(result)

    raise AuthError(
        AuthErrorCode.INVALID_INPUT,
        "Either secret (for enabling) or userId (for login) is required",
    )


@router.post("/disable-2fa")
async def disable_two_factor(
    body: DisableTwoFactorRequest,
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Turn 2FA off after re-checking the password; logs out every device.

    Raises:
        AuthError: INVALID_PASSWORD (401), USER_NOT_FOUND (404)
    """
    await auth_service.disable_two_factor(current_user.user_id, body.password)
    return MessageResponse(
        message="2FA has been disabled. All sessions have been logged out for security.",
    )


@router.get("/session")
async def validate_session(
    current_user: CurrentUser = Depends(get_current_user),
) -> SessionStatusResponse:
    """Confirm the presented token still maps to a live session."""
    return SessionStatusResponse(user=current_user)


@router.get("/sessions")
async def list_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> list[SessionSummary]:
    """List the caller's active sessions, most recently used first."""
    return await auth_service.list_sessions(current_user.user_id)
