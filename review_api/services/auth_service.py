"""Authentication service: login, 2FA, logout, password change and registration."""

from typing import Optional
from uuid import UUID

import structlog

from review_api.config import Settings, get_settings
from review_api.errors import AuthError, AuthErrorCode
from review_api.models.auth import (
    Authenticated,
    LoginOutcome,
    RegisterRequest,
    TwoFactorRequired,
    TwoFactorSecret,
)
from review_api.models.session import SessionSummary
from review_api.models.user import User, UserRecord
from review_api.services.password_hasher import PasswordHasher
from review_api.services.session_service import SessionService
from review_api.services.token_service import TokenService
from review_api.services.totp_service import TotpService
from review_api.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AuthService:
    """Orchestrates the credential store, session store, hasher, token issuer and TOTP engine.

    Every collaborator can be injected; anything omitted is built from settings.
    Failures are raised as ``AuthError`` with a named code and never mapped
    to transport statuses here.
    """

    def __init__(
        self,
        users: Optional[UserService] = None,
        sessions: Optional[SessionService] = None,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[TokenService] = None,
        totp: Optional[TotpService] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.users = users or UserService()
        self.sessions = sessions or SessionService()
        self.hasher = hasher or PasswordHasher(rounds=self.settings.bcrypt_rounds)
        self.tokens = tokens or TokenService(
            secret=self.settings.jwt_secret,
            lifetime=self.settings.token_lifetime,
        )
        self.totp = totp or TotpService(
            issuer=self.settings.totp_issuer,
            valid_window=self.settings.totp_valid_window,
        )

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def authenticate(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginOutcome:
        """Verify credentials and either finish the login or ask for a TOTP code.

        An unknown email and a wrong password fail with the same code so the
        response never reveals whether an account exists.

        Args:
            email: Login email
            password: Plain-text password
            ip_address: Client IP recorded on the session
            user_agent: Client user-agent recorded on the session

        Returns:
            Authenticated when 2FA is off, TwoFactorRequired when it is on
            (no token issued, no session created)

        Raises:
            AuthError: INVALID_CREDENTIALS or ACCOUNT_INACTIVE
        """
        user = await self.users.get_by_email(email)

        if user is None:
            logger.info("login_failed", reason="unknown_email")
            raise AuthError(AuthErrorCode.INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("login_failed", reason="inactive", user_id=str(user.user_id))
            raise AuthError(AuthErrorCode.ACCOUNT_INACTIVE)

        if not await self.hasher.verify(password, user.password_hash):
            logger.info("login_failed", reason="bad_password", user_id=str(user.user_id))
            raise AuthError(AuthErrorCode.INVALID_CREDENTIALS)

        if user.two_fa_enabled:
            logger.info("login_two_factor_required", user_id=str(user.user_id))
            return TwoFactorRequired(user_id=user.user_id)

        return await self._start_session(user, ip_address, user_agent)

    async def verify_two_factor_and_authenticate(
        self,
        user_id: UUID,
        code: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Authenticated:
        """Second step of a 2FA login.

        Raises:
            AuthError: INVALID_2FA_SETUP if the user does not exist or has no
                active secret, INVALID_2FA_TOKEN if the code does not verify,
                ACCOUNT_INACTIVE if the account was deactivated after the
                first step
        """
        user = await self.users.get_by_id(user_id)

        if user is None or not user.two_fa_enabled or not user.two_fa_secret:
            raise AuthError(AuthErrorCode.INVALID_2FA_SETUP)

        if not user.is_active:
            logger.info("two_factor_login_failed", reason="inactive", user_id=str(user_id))
            raise AuthError(AuthErrorCode.ACCOUNT_INACTIVE)

        if not self.totp.verify(user.two_fa_secret, code):
            logger.info("two_factor_login_failed", user_id=str(user_id))
            raise AuthError(AuthErrorCode.INVALID_2FA_TOKEN)

        return await self._start_session(user, ip_address, user_agent)

    async def _start_session(
        self,
        user: UserRecord,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> Authenticated:
        """Issue a token, record its session and stamp the last login."""
        issued = self.tokens.issue(
            user_id=user.user_id,
            email=user.email,
            is_admin=user.is_admin,
        )
        await self.sessions.create(
            user_id=user.user_id,
            token=issued.token,
            expires_at=issued.expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self.users.update_last_login(user.user_id)

        logger.info("login_succeeded", user_id=str(user.user_id))

        return Authenticated(
            token=issued.token,
            expires_in=self.settings.jwt_expires_in,
            user=user.to_public(),
        )

    async def logout(self, token: str) -> None:
        """Delete the session for a token. An already absent session is fine."""
        removed = await self.sessions.delete_by_token(token)
        logger.info("logout", session_removed=removed)

    async def list_sessions(self, user_id: UUID) -> list[SessionSummary]:
        return await self.sessions.list_active_for_user(user_id)

    # ------------------------------------------------------------------
    # Registration and passwords
    # ------------------------------------------------------------------

    async def register(self, data: RegisterRequest) -> User:
        """Create an active account with 2FA disabled.

        Raises:
            AuthError: USER_ALREADY_EXISTS if the email is taken
        """
        if await self.users.get_by_email(data.email) is not None:
            raise AuthError(AuthErrorCode.USER_ALREADY_EXISTS)

        password_hash = await self.hasher.hash(data.password)

        return await self.users.create_user(
            email=data.email,
            password_hash=password_hash,
            first_name=data.first_name,
            last_name=data.last_name,
            job_title=data.job_title,
            is_admin=data.is_admin,
        )

    async def ensure_bootstrap_admin(self, email: str, password: str) -> Optional[User]:
        """Create the first admin account unless the email already exists.

        Returns:
            The created admin, or None if nothing was created
        """
        if await self.users.get_by_email(email) is not None:
            return None

        admin = await self.register(
            RegisterRequest(
                email=email,
                password=password,
                first_name="System",
                last_name="Administrator",
                is_admin=True,
            )
        )
        logger.info("bootstrap_admin_created", user_id=str(admin.user_id))
        return admin

    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        """Replace a password and revoke every session of the user.

        Outstanding JWTs stay cryptographically valid until they expire, but
        the request gate rejects them because their sessions are gone.

        Raises:
            AuthError: USER_NOT_FOUND or INVALID_PASSWORD
        """
        user = await self._require_password(user_id, current_password)

        new_hash = await self.hasher.hash(new_password)
        await self.users.update_password(user.user_id, new_hash)
        await self.sessions.delete_all_for_user(user.user_id)

        logger.info("password_changed", user_id=str(user_id))

    async def _require_password(self, user_id: UUID, password: str) -> UserRecord:
        user = await self.users.get_by_id(user_id)

        if user is None:
            raise AuthError(AuthErrorCode.USER_NOT_FOUND)

        if not await self.hasher.verify(password, user.password_hash):
            raise AuthError(AuthErrorCode.INVALID_PASSWORD)

        return user

    # ------------------------------------------------------------------
    # Two-factor management
    # ------------------------------------------------------------------

    def generate_two_factor_secret(self, user_id: UUID, email: str) -> TwoFactorSecret:
        """Create a secret and provisioning URI. Nothing is persisted yet."""
        logger.info("two_factor_secret_generated", user_id=str(user_id))
        return self.totp.generate_secret(email)

    async def enable_two_factor(self, user_id: UUID, secret: str, code: str) -> None:
        """Persist a secret once the user proves they hold it.

        Raises:
            AuthError: INVALID_2FA_TOKEN; nothing is written in that case
        """
        if not self.totp.verify(secret, code):
            logger.info("two_factor_enable_failed", user_id=str(user_id))
            raise AuthError(AuthErrorCode.INVALID_2FA_TOKEN)

        await self.users.update_two_factor(user_id, enabled=True, secret=secret)

    async def disable_two_factor(self, user_id: UUID, password: str) -> None:
        """Clear 2FA after re-checking the password, then revoke every session.

        Raises:
            AuthError: USER_NOT_FOUND or INVALID_PASSWORD
        """
        user = await self._require_password(user_id, password)

        await self.users.update_two_factor(user.user_id, enabled=False, secret=None)
        await self.sessions.delete_all_for_user(user.user_id)
