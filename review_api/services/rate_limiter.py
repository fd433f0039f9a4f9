"""Per-client limit on login attempts, counted in Redis."""

import math
from typing import Optional

import structlog

from review_api.config import Settings, get_settings
from review_api.errors import AuthError, AuthErrorCode
from review_api.services.redis_service import get_redis

logger = structlog.get_logger(__name__)


class LoginRateLimiter:
    """Fixed-window counter keyed by client IP.

    When Redis is unreachable every attempt is allowed.
    """

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.enabled = settings.login_rate_limit_enabled
        self.max_attempts = settings.login_rate_limit_attempts
        self.window_seconds = settings.login_rate_limit_window_seconds

    async def check(self, client_key: str) -> tuple[bool, int]:
        """Count one attempt for a client.

        Args:
            client_key: Usually the client IP

        Returns:
            Tuple of (allowed, seconds until the window resets)
        """
        if not self.enabled:
            return True, 0

        client = await get_redis()
        if client is None:
            return True, 0

        key = f"login_attempts:{client_key}"

        try:
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, self.window_seconds)

            if count > self.max_attempts:
                ttl = await client.ttl(key)
                return False, max(int(ttl), 0)

            return True, 0
        except Exception as e:
            logger.warning("login_rate_limit_check_failed", error=str(e))
            return True, 0

    async def enforce(self, client_key: str) -> None:
        """Raise once a client exceeds its attempts for the window.

        Raises:
            AuthError: RATE_LIMIT_EXCEEDED
        """
        allowed, retry_after = await self.check(client_key)
        if allowed:
            return

        minutes = max(1, math.ceil(retry_after / 60))
        logger.warning("login_rate_limited", client=client_key, retry_after=retry_after)
        raise AuthError(
            AuthErrorCode.RATE_LIMIT_EXCEEDED,
            f"Too many attempts. Please try again in {minutes} minutes.",
        )
