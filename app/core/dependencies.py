"""
Dependency injection for FastAPI.
"""
from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AccessDeniedError
from app.domain.schemas.auth import Principal
from app.infrastructure.database.base import get_db
from app.repositories.user import UserRepository
from app.services.auth.token_service import TokenService

logger = structlog.get_logger(__name__)

# A missing header yields None so read paths can serve anonymous callers
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login",
    auto_error=False,
)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService()


async def get_optional_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> Optional[Principal]:
    """
    Resolve the bearer token into a principal, if one was sent.

    Returns:
        Principal, or None when no bearer token was sent

    Raises:
        MalformedTokenError, BadSignatureError, ExpiredTokenError: A token was
            sent but does not validate
        AccessDeniedError: Token version checking is on and the token was
            issued before the account last changed
    """
    if not token:
        return None

    claims = token_service.validate(token)
    principal = Principal.from_claims(claims)

    if settings.TOKEN_VERSION_CHECK:
        user = await UserRepository(db).get(principal.id)
        if user is None or not user.enabled or user.token_version != principal.token_version:
            logger.info("token_version_rejected", user_id=str(principal.id))
            raise AccessDeniedError("token no longer matches account state")

    return principal


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    """
    Require an authenticated principal.

    Raises:
        AccessDeniedError: If no bearer token was sent
    """
    if principal is None:
        raise AccessDeniedError("authentication required")
    return principal
