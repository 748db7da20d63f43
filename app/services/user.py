"""
User service.
"""
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.domain.schemas.auth import Principal
from app.domain.schemas.user import AdminUserUpdate, UserProfile, UserUpdate, UserWithStats
from app.infrastructure.database.models import User
from app.repositories.certificate import CertificateRepository
from app.repositories.user import UserRepository
from app.services.auth.authorization.policies import AccessPolicy, PolicyAction, access_policy
from app.services.auth.authorization.rbac import UserRole

logger = structlog.get_logger(__name__)


class UserService:
    """User directory and profile management."""

    def __init__(self, db: AsyncSession, policy: Optional[AccessPolicy] = None):
        self.db = db
        self.user_repo = UserRepository(db)
        self.certificate_repo = CertificateRepository(db)
        self.policy = policy or access_policy

    async def list(
        self,
        search: Optional[str] = None,
        unit: Optional[str] = None,
        role: Optional[UserRole] = None,
        skill: Optional[str] = None,
    ) -> List[UserProfile]:
        """
        List users, narrowed by at most one filter.

        The first given filter wins, in the order search, unit, role, skill.
        """
        if search and search.strip():
            users = await self.user_repo.search(search)
        elif unit:
            users = await self.user_repo.find_by_unit(unit)
        elif role:
            users = await self.user_repo.find_by_role(role)
        elif skill:
            users = await self.user_repo.find_by_skill(skill)
        else:
            users = await self.user_repo.list_all()
        return [UserProfile.model_validate(u) for u in users]

    async def get(self, user_id: UUID) -> UserWithStats:
        """
        Get user by ID with their certificate count.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self._load(user_id)
        counts = await self.certificate_repo.count_by_owner([user.id])
        return UserWithStats.model_validate(user).model_copy(
            update={"certificates_count": counts.get(user.id, 0)}
        )

    async def update(
        self,
        principal: Optional[Principal],
        user_id: UUID,
        user_update: UserUpdate,
    ) -> UserProfile:
        """
        Update a profile; allowed for the user themself or an administrator.

        Raises:
            NotFoundError: If the user does not exist
            AccessDeniedError: If the principal is neither the user nor an admin
        """
        user = await self._load(user_id)
        self.policy.authorize(principal, PolicyAction.UPDATE, owner_id=user.id, unit=user.unit)

        changes = user_update.model_dump(exclude_unset=True, exclude_none=True)
        if "skills" in changes:
            changes["skills"] = [s.strip() for s in changes["skills"] if s and s.strip()]
        user = await self.user_repo.update(user, changes)

        logger.info(
            "user_profile_updated",
            user_id=str(user_id),
            updated_by=str(principal.id),
            fields=sorted(changes),
        )
        return UserProfile.model_validate(user)

    async def administer(
        self,
        principal: Optional[Principal],
        user_id: UUID,
        changes: AdminUserUpdate,
    ) -> UserProfile:
        """
        Change a user's role or enabled flag.

        Outstanding tokens of the user are invalidated by bumping their
        token version when version checking is enabled.
        """
        self.policy.authorize(principal, PolicyAction.ADMINISTER)
        user = await self._load(user_id)

        data = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not data:
            raise ValidationError("No changes provided")
        if user.id == principal.id and data.get("role", UserRole.ADMIN) is not UserRole.ADMIN:
            raise ValidationError("Administrators cannot demote themselves", field="role")

        data["token_version"] = user.token_version + 1
        user = await self.user_repo.update(user, data)

        logger.info(
            "user_account_administered",
            user_id=str(user_id),
            admin_id=str(principal.id),
            role=user.role.value,
            enabled=user.enabled,
        )
        return UserProfile.model_validate(user)

    async def units(self) -> List[str]:
        return await self.user_repo.distinct_units()

    async def job_titles(self) -> List[str]:
        return await self.user_repo.distinct_job_titles()

    async def managers(self) -> List[UserProfile]:
        users = await self.user_repo.find_by_role(UserRole.MANAGER)
        return [UserProfile.model_validate(u) for u in users]

    async def _load(self, user_id: UUID) -> User:
        user = await self.user_repo.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user
