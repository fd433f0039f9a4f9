"""User models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from review_api.models.base import CamelModel


class User(CamelModel):
    """A user as exposed to clients: no password hash, no TOTP secret."""

    user_id: UUID
    email: str
    first_name: str
    last_name: str
    job_title: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True
    two_fa_enabled: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserRecord(User):
    """A user row as stored, including credential material."""

    password_hash: str
    two_fa_secret: Optional[str] = None

    def to_public(self) -> User:
        """Strip credential material for responses and logs."""
        return User.model_validate(
            self.model_dump(exclude={"password_hash", "two_fa_secret"})
        )
