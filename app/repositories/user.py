"""
User repository.
"""
from typing import List, Optional

from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import User
from app.repositories.base import BaseRepository, escape_like
from app.services.auth.authorization.rbac import UserRole


class UserRepository(BaseRepository[User]):
    """User repository."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(
        self,
        email: str,
    ) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: User email, matched case-insensitively

        Returns:
            User if found
        """
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def search(self, query: str) -> List[User]:
        """Case-insensitive match on name, email, job title or unit."""
        pattern = f"%{escape_like(query.strip())}%"
        stmt = (
            select(User)
            .where(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    User.job_title.ilike(pattern, escape="\\"),
                    User.unit.ilike(pattern, escape="\\"),
                )
            )
            .order_by(User.name, User.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_unit(self, unit: str) -> List[User]:
        stmt = select(User).where(User.unit == unit).order_by(User.name, User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_role(self, role: UserRole) -> List[User]:
        stmt = select(User).where(User.role == role).order_by(User.name, User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_skill(self, skill: str) -> List[User]:
        """Users whose skill list contains the given skill, ignoring case."""
        pattern = f'%"{escape_like(skill.strip())}"%'
        stmt = (
            select(User)
            .where(cast(User.skills, String).ilike(pattern, escape="\\"))
            .order_by(User.name, User.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.name, User.id))
        return list(result.scalars().all())

    async def distinct_units(self) -> List[str]:
        stmt = select(User.unit).where(User.unit.is_not(None)).distinct().order_by(User.unit)
        result = await self.db.execute(stmt)
        return [row for row in result.scalars().all()]

    async def distinct_job_titles(self) -> List[str]:
        stmt = (
            select(User.job_title)
            .where(User.job_title.is_not(None))
            .distinct()
            .order_by(User.job_title)
        )
        result = await self.db.execute(stmt)
        return [row for row in result.scalars().all()]
