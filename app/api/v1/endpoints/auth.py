"""
Authentication endpoints.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_principal, get_token_service
from app.domain.schemas.auth import AuthResponse, Principal, UserLogin, UserRegistration
from app.domain.schemas.user import UserProfile
from app.infrastructure.database.base import get_db
from app.services.auth.auth_service import AuthService
from app.services.auth.token_service import TokenService

router = APIRouter()


@router.post("/register", response_model=AuthResponse)
async def register(
    user_data: UserRegistration,
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Register a new user.

    - New accounts always get role USER
    - Emails are unique, compared case-insensitively
    - Returns the user profile and an access token
    """
    auth_service = AuthService(db, token_service)
    client_ip = request.client.host if request.client else None
    return await auth_service.register(user_data, request_ip=client_ip)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """
    Login with email and password.
    """
    auth_service = AuthService(db, token_service)
    client_ip = request.client.host if request.client else None
    return await auth_service.login(credentials, request_ip=client_ip)


@router.get("/me", response_model=UserProfile)
async def me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """
    Get the profile of the authenticated user.
    """
    user = await AuthService(db).current_user(principal)
    return UserProfile.model_validate(user)
