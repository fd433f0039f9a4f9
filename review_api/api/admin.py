"""Admin API endpoints for user management."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, status

from review_api.api.dependencies import get_auth_service, require_admin
from review_api.errors import AuthError, AuthErrorCode
from review_api.models.auth import CurrentUser, RegisterRequest, UpdateUserRequest
from review_api.models.user import User
from review_api.services.auth_service import AuthService
from review_api.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def get_user_service() -> UserService:
    return UserService()


@router.get("/users")
async def list_users(
    admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> list[User]:
    """List all users (admin only)."""
    return await user_service.list_users()


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: RegisterRequest,
    admin: CurrentUser = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Register a new user (admin only).

    Raises:
        AuthError: USER_ALREADY_EXISTS (409)
    """
    user = await auth_service.register(body)

    logger.info(
        "admin_created_user",
        admin_id=str(admin.user_id),
        new_user_id=str(user.user_id),
    )

    return user


@router.patch("/users/{user_id}")
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest,
    admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Update user details, including the active and admin flags (admin only).

    Only fields present in the body change; an explicit null for jobTitle
    clears it.

    Deactivating a user takes effect on their next request: the request gate
    rejects sessions owned by inactive users.

    Raises:
        AuthError: USER_NOT_FOUND (404)
    """
    updated = await user_service.update_user(user_id, body.model_dump(exclude_unset=True))

    if updated is None:
        raise AuthError(AuthErrorCode.USER_NOT_FOUND)

    logger.info(
        "admin_updated_user",
        admin_id=str(admin.user_id),
        target_user_id=str(user_id),
    )

    return updated


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> None:
    """Delete a user and all of their sessions (admin only).

    Admins cannot delete themselves to prevent lockout.

    Raises:
        AuthError: FORBIDDEN (403) on self-delete, USER_NOT_FOUND (404)
    """
    if admin.user_id == user_id:
        raise AuthError(AuthErrorCode.FORBIDDEN, "Cannot delete your own admin account")

    deleted = await user_service.delete_user(user_id)

    if not deleted:
        raise AuthError(AuthErrorCode.USER_NOT_FOUND)

    logger.info(
        "admin_deleted_user",
        admin_id=str(admin.user_id),
        deleted_user_id=str(user_id),
    )
