"""
Authentication Service for CertifyHub.

Handles registration, login and the current-user lookup, issuing access
tokens through the token service.
"""
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
)
from app.core.security import dummy_password_hash, get_password_hash, verify_password
from app.domain.schemas.auth import AuthResponse, Principal, UserLogin, UserRegistration
from app.domain.schemas.user import UserProfile
from app.infrastructure.database.models import User
from app.repositories.user import UserRepository
from app.services.auth.authorization.rbac import UserRole
from app.services.auth.token_service import TokenService

logger = structlog.get_logger(__name__)


class AuthService:
    """Authentication service."""

    def __init__(self, db: AsyncSession, token_service: Optional[TokenService] = None):
        self.db = db
        self.user_repo = UserRepository(db)
        self.token_service = token_service or TokenService()

    async def register(
        self,
        user_data: UserRegistration,
        request_ip: Optional[str] = None,
    ) -> AuthResponse:
        """
        Register a new user with role USER.

        Args:
            user_data: User registration data
            request_ip: Client IP address

        Returns:
            AuthResponse with user profile and access token

        Raises:
            ConflictError: If email already registered
        """
        email = user_data.email

        if await self.user_repo.exists_by_email(email):
            logger.warning("registration_attempt_existing_email", email=email, ip=request_ip)
            raise ConflictError("Email already registered")

        try:
            user = await self.user_repo.create({
                "email": email,
                "password_hash": get_password_hash(user_data.password),
                "name": user_data.name.strip(),
                "job_title": user_data.job_title,
                "unit": user_data.unit,
                "contacts_enabled": user_data.contacts_enabled,
                "role": UserRole.USER,
                "enabled": True,
                "skills": [],
                "social_links": {},
            })
        except IntegrityError as e:
            # Lost a race against a concurrent registration of the same email
            await self.db.rollback()
            logger.warning("registration_email_conflict", email=email, ip=request_ip)
            raise ConflictError("Email already registered") from e

        logger.info(
            "user_registered",
            user_id=str(user.id),
            email=email,
            unit=user.unit,
            ip=request_ip,
        )
        return self._auth_response(user)

    async def login(
        self,
        credentials: UserLogin,
        request_ip: Optional[str] = None,
    ) -> AuthResponse:
        """
        Authenticate user and issue an access token.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password or disabled account
        """
        user = await self.user_repo.get_by_email(credentials.email)
        if user is None:
            verify_password(credentials.password, dummy_password_hash())
        if user is None or not verify_password(credentials.password, user.password_hash):
            logger.warning("login_failed", email=credentials.email, ip=request_ip)
            raise InvalidCredentialsError()

        if not user.enabled:
            logger.warning("login_disabled_account", user_id=str(user.id), ip=request_ip)
            raise InvalidCredentialsError()

        logger.info("user_logged_in", user_id=str(user.id), ip=request_ip)
        return self._auth_response(user)

    async def current_user(self, principal: Principal) -> User:
        """Load the stored record of the authenticated principal."""
        user = await self.user_repo.get(principal.id)
        if user is None:
            raise NotFoundError("User", principal.id)
        return user

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            user=UserProfile.model_validate(user),
            tokens=self.token_service.issue(user),
        )
