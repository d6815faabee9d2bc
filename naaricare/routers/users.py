"""Current user endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from naaricare.dependencies import AppRoleCache, CurrentUser
from naaricare.models.users import UserRead
from naaricare.services.roles import is_admin

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserRead)
async def get_current_user_profile(user: CurrentUser, cache: AppRoleCache) -> Any:
    """Get the authenticated user and whether they hold the admin role."""
    return UserRead(
        user_id=user.user_id,
        email=user.email,
        is_admin=await is_admin(user.user_id, cache),
    )
