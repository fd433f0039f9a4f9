"""Session store: one row per issued bearer token."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from review_api.database import get_pool
from review_api.models.session import Session, SessionSummary

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _deleted_count(status: str) -> int:
    """Parse the row count out of an asyncpg status string like ``DELETE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class SessionService:
    """Persists sessions and treats expired rows as absent on every read."""

    async def create(
        self,
        user_id: UUID,
        token: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Session:
        """Store a session for a freshly issued token.

        Args:
            user_id: Owning user
            token: The bearer token string
            expires_at: Same instant as the token's ``exp`` claim
            ip_address: Client IP, if known
            user_agent: Client user-agent, if known

        Returns:
            Created Session
        """
        session_id = uuid4()
        now = _utcnow()

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO sessions (id, user_id, token, created_at, expires_at,
                                      last_activity, ip_address, user_agent)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                session_id,
                user_id,
                token,
                now,
                expires_at,
                now,
                ip_address,
                user_agent,
            )

        logger.info(
            "session_created",
            session_id=str(session_id),
            user_id=str(user_id),
            expires_at=expires_at.isoformat(),
        )

        return Session(
            session_id=session_id,
            user_id=user_id,
            token=token,
            created_at=now,
            expires_at=expires_at,
            last_activity=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def find_by_token(self, token: str) -> Optional[Session]:
        """Look up an unexpired session by its token.

        Returns:
            Session, or None if absent or past its expiry
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, user_id, token, created_at, expires_at, last_activity,
                       ip_address, user_agent
                FROM sessions
                WHERE token = $1 AND expires_at > $2
                """,
                token,
                _utcnow(),
            )

        if row is None:
            return None

        return Session(
            session_id=row["id"],
            user_id=row["user_id"],
            token=row["token"],
            created_at=row["created_at"],
            expires_at=row["expires_at"],
            last_activity=row["last_activity"],
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
        )

    async def touch(self, session_id: UUID) -> None:
        """Refresh a session's last-activity timestamp."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                "UPDATE sessions SET last_activity = $1 WHERE id = $2",
                _utcnow(),
                session_id,
            )

    async def delete_by_token(self, token: str) -> bool:
        """Delete one session. Deleting an absent session is not an error.

        Returns:
            True if a row was removed
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute("DELETE FROM sessions WHERE token = $1", token)

        return _deleted_count(result) > 0

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every session of a user, forcing re-authentication everywhere.

        Sessions inserted after this statement runs are unaffected.

        Returns:
            Number of sessions removed
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute("DELETE FROM sessions WHERE user_id = $1", user_id)

        count = _deleted_count(result)
        logger.info("sessions_invalidated", user_id=str(user_id), count=count)
        return count

    async def delete_expired(self) -> int:
        """Reclaim rows past their expiry.

        Returns:
            Number of sessions removed
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM sessions WHERE expires_at <= $1",
                _utcnow(),
            )

        return _deleted_count(result)

    async def list_active_for_user(self, user_id: UUID) -> list[SessionSummary]:
        """Return a user's unexpired sessions, most recently active first."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, created_at, expires_at, last_activity, ip_address, user_agent
                FROM sessions
                WHERE user_id = $1 AND expires_at > $2
                ORDER BY last_activity DESC
                """,
                user_id,
                _utcnow(),
            )

        return [
            SessionSummary(
                session_id=row["id"],
                created_at=row["created_at"],
                expires_at=row["expires_at"],
                last_activity=row["last_activity"],
                ip_address=row["ip_address"],
                user_agent=row["user_agent"],
            )
            for row in rows
        ]
