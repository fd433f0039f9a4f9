"""Shared Redis client for login attempt counters."""

import time
from typing import Optional

import redis.asyncio as redis
import structlog

from review_api.config import get_settings

logger = structlog.get_logger(__name__)

# After a failed connect, logins skip Redis for this long instead of
# paying a connect timeout on every request
RECONNECT_BACKOFF_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 1.0

_redis_client: Optional[redis.Redis] = None
_last_failure: Optional[float] = None


async def get_redis() -> Optional[redis.Redis]:
    """Return the connected client, or None while Redis is unavailable."""
    global _redis_client, _last_failure

    if _redis_client is not None:
        return _redis_client

    if _last_failure is not None and time.monotonic() - _last_failure < RECONNECT_BACKOFF_SECONDS:
        return None

    settings = get_settings()
    client = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
        socket_timeout=CONNECT_TIMEOUT_SECONDS,
    )

    try:
        await client.ping()
    except Exception as e:
        _last_failure = time.monotonic()
        logger.warning(
            "redis_connection_failed",
            error=str(e),
            retry_in_seconds=RECONNECT_BACKOFF_SECONDS,
        )
        await client.aclose()
        return None

    _redis_client = client
    _last_failure = None
    logger.info("redis_connected", url=settings.redis_url.split("@")[-1])
    return _redis_client


async def close_redis() -> None:
    global _redis_client, _last_failure

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_connection_closed")
    _last_failure = None
