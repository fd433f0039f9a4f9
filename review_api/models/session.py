"""Session models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from review_api.models.base import CamelModel


class Session(CamelModel):
    """A live authentication grant bound to one issued bearer token."""

    session_id: UUID
    user_id: UUID
    token: str
    created_at: datetime
    expires_at: datetime
    last_activity: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SessionSummary(CamelModel):
    """Session listing entry; never carries the token string."""

    session_id: UUID
    created_at: datetime
    expires_at: datetime
    last_activity: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
