"""Credential store: user persistence."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from review_api.database import get_pool
from review_api.errors import AuthError, AuthErrorCode
from review_api.models.user import User, UserRecord

logger = structlog.get_logger(__name__)

_USER_COLUMNS = """
    id, email, password_hash, first_name, last_name, job_title, is_admin,
    is_active, two_fa_enabled, two_fa_secret, last_login, created_at, updated_at
"""

# Columns an admin may change through a partial update
UPDATABLE_COLUMNS = ("first_name", "last_name", "job_title", "is_admin", "is_active")


def _row_to_record(row) -> UserRecord:
    return UserRecord(
        user_id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        job_title=row["job_title"],
        is_admin=row["is_admin"],
        is_active=row["is_active"],
        two_fa_enabled=row["two_fa_enabled"],
        two_fa_secret=row["two_fa_secret"],
        last_login=row["last_login"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Service for user persistence and lookups."""

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        """Get a user by email (exact match, as stored).

        Args:
            email: Email to look up

        Returns:
            UserRecord or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1",
                email,
            )

        return _row_to_record(row) if row is not None else None

    async def get_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        """Get a user by UUID.

        Args:
            user_id: User UUID

        Returns:
            UserRecord or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        return _row_to_record(row) if row is not None else None

    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        job_title: Optional[str] = None,
        is_admin: bool = False,
    ) -> User:
        """Insert a new active user with 2FA disabled.

        Args:
            email: Unique email
            password_hash: Already-hashed password
            first_name: Given name
            last_name: Family name
            job_title: Optional job title
            is_admin: Whether the user has admin privileges

        Returns:
            Created User

        Raises:
            AuthError: USER_ALREADY_EXISTS if the email is taken
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, email, password_hash, first_name, last_name, job_title,
                                       is_admin, is_active, two_fa_enabled, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, TRUE, FALSE, $8, $9)
                    """,
                    user_id,
                    email,
                    password_hash,
                    first_name,
                    last_name,
                    job_title,
                    is_admin,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            raise AuthError(AuthErrorCode.USER_ALREADY_EXISTS)

        logger.info("user_created", user_id=str(user_id), is_admin=is_admin)

        return User(
            user_id=user_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            job_title=job_title,
            is_admin=is_admin,
            is_active=True,
            two_fa_enabled=False,
            created_at=now,
            updated_at=now,
        )

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                "UPDATE users SET password_hash = $1, updated_at = $2 WHERE id = $3",
                password_hash,
                datetime.now(timezone.utc),
                user_id,
            )

        logger.info("user_password_updated", user_id=str(user_id))

    async def update_two_factor(
        self, user_id: UUID, enabled: bool, secret: Optional[str]
    ) -> None:
        """Persist the 2FA flag and secret together.

        Args:
            user_id: User UUID
            enabled: New 2FA state
            secret: Proven secret when enabling, None when disabling
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET two_fa_enabled = $1, two_fa_secret = $2, updated_at = $3
                WHERE id = $4
                """,
                enabled,
                secret,
                datetime.now(timezone.utc),
                user_id,
            )

        logger.info("user_two_factor_updated", user_id=str(user_id), enabled=enabled)

    async def update_last_login(self, user_id: UUID) -> None:
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                "UPDATE users SET last_login = $1 WHERE id = $2",
                datetime.now(timezone.utc),
                user_id,
            )

    async def list_users(self) -> list[User]:
        """Return all users ordered by last name, then first name."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_USER_COLUMNS} FROM users ORDER BY last_name, first_name"
            )

        return [_row_to_record(row).to_public() for row in rows]

    async def update_user(self, user_id: UUID, changes: Dict[str, Any]) -> Optional[User]:
        """Apply a partial update.

        Only keys present in ``changes`` are written, so a ``None`` value
        stores NULL (clearing ``job_title``) rather than being skipped.

        Args:
            user_id: User to update
            changes: Column name to new value; names outside the editable
                columns are rejected

        Returns:
            Updated User, or None if user not found
        """
        unknown = set(changes) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Columns not updatable: {', '.join(sorted(unknown))}")

        set_clauses = []
        params = []

        for column in UPDATABLE_COLUMNS:
            if column in changes:
                params.append(changes[column])
                set_clauses.append(f"{column} = ${len(params)}")

        if not set_clauses:
            record = await self.get_by_id(user_id)
            return record.to_public() if record is not None else None

        params.append(datetime.now(timezone.utc))
        set_clauses.append(f"updated_at = ${len(params)}")

        params.append(user_id)
        query = f"""
            UPDATE users
            SET {', '.join(set_clauses)}
            WHERE id = ${len(params)}
            RETURNING {_USER_COLUMNS}
        """

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(query, *params)

        if row is None:
            return None

        logger.info(
            "user_updated",
            user_id=str(user_id),
            fields_updated=[column for column in UPDATABLE_COLUMNS if column in changes],
        )

        return _row_to_record(row).to_public()

    async def delete_user(self, user_id: UUID) -> bool:
        """Hard-delete a user together with all of their sessions.

        Returns:
            True if the user was deleted, False if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("DELETE FROM sessions WHERE user_id = $1", user_id)
                result = await conn.execute("DELETE FROM users WHERE id = $1", user_id)

        deleted = result == "DELETE 1"

        if deleted:
            logger.info("user_deleted", user_id=str(user_id))
        else:
            logger.warning("user_delete_not_found", user_id=str(user_id))

        return deleted
