"""API package exports."""

from review_api.api.admin import router as admin_router
from review_api.api.auth import router as auth_router
from review_api.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware

__all__ = [
    "CorrelationIdMiddleware",
    "RequestLoggingMiddleware",
    "admin_router",
    "auth_router",
]
