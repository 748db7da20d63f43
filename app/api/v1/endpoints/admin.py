"""
Administrative endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_principal
from app.domain.schemas.auth import Principal
from app.domain.schemas.user import AdminUserUpdate, UserProfile
from app.infrastructure.database.base import get_db
from app.services.user import UserService

router = APIRouter()


@router.patch("/users/{user_id}", response_model=UserProfile)
async def administer_user(
    user_id: UUID,
    changes: AdminUserUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """
    Change a user's role or enable/disable their account.

    Requires ADMIN. Roles are only ever granted here, never at registration.
    """
    return await UserService(db).administer(principal, user_id, changes)
