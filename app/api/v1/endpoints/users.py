"""
User directory endpoints.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_principal
from app.domain.schemas.auth import Principal
from app.domain.schemas.user import UserProfile, UserUpdate, UserWithStats
from app.infrastructure.database.base import get_db
from app.services.auth.authorization.rbac import UserRole
from app.services.user import UserService

router = APIRouter()


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=List[UserProfile])
async def list_users(
    search: Optional[str] = Query(None),
    unit: Optional[str] = Query(None),
    role: Optional[UserRole] = Query(None),
    skill: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> List[UserProfile]:
    """
    List users.

    Only one filter applies; search takes precedence over unit, role and skill.
    """
    return await service.list(search=search, unit=unit, role=role, skill=skill)


@router.get("/units", response_model=List[str])
async def list_units(
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> List[str]:
    return await service.units()


@router.get("/job-titles", response_model=List[str])
async def list_job_titles(
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> List[str]:
    return await service.job_titles()


@router.get("/managers", response_model=List[UserProfile])
async def list_managers(
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> List[UserProfile]:
    return await service.managers()


@router.get("/{user_id}", response_model=UserWithStats)
async def get_user(
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> UserWithStats:
    """Get a user profile with certificate count."""
    return await service.get(user_id)


@router.put("/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: UUID,
    user_update: UserUpdate,
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    """
    Update a user profile.

    Users may edit their own profile; administrators may edit any.
    """
    return await service.update(principal, user_id, user_update)
