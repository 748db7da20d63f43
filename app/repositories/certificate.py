"""
Certificate repository with listing, search and engagement statements.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import String, cast, delete, extract, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import ValidationError
from app.infrastructure.database.models import (
    Certificate,
    CertificateLike,
    utcnow,
)
from app.repositories.base import BaseRepository, escape_like

SORTABLE_COLUMNS = {
    "createdAt": Certificate.created_at,
    "created_at": Certificate.created_at,
    "updatedAt": Certificate.updated_at,
    "updated_at": Certificate.updated_at,
    "likes": Certificate.like_count,
    "views": Certificate.view_count,
    "title": Certificate.title,
    "completionDate": Certificate.completion_date,
    "completion_date": Certificate.completion_date,
}


@dataclass
class CertificateFilters:
    """Optional narrowing applied on top of the visibility predicate."""
    search: Optional[str] = None
    category: Optional[str] = None
    owner_id: Optional[UUID] = None
    tag: Optional[str] = None


class CertificateRepository(BaseRepository[Certificate]):
    """Repository for certificate data access."""

    def __init__(self, db: AsyncSession):
        super().__init__(Certificate, db)

    @staticmethod
    def _with_owner():
        return select(Certificate).options(selectinload(Certificate.owner))

    async def get_with_owner(self, certificate_id: UUID) -> Optional[Certificate]:
        """
        Get certificate with its owner loaded.

        The identity map is refreshed so counters reflect the latest commit.
        """
        stmt = (
            self._with_owner()
            .where(Certificate.id == certificate_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, data: Dict) -> Certificate:
        certificate = await super().create(data)
        return await self.get_with_owner(certificate.id)

    async def list_visible(
        self,
        visibility_clause: ColumnElement[bool],
        filters: Optional[CertificateFilters] = None,
        page: int = 0,
        size: int = 10,
        sort_by: str = "createdAt",
        direction: str = "desc",
    ) -> Tuple[List[Certificate], int]:
        """
        List certificates readable under the given predicate.

        Args:
            visibility_clause: SQL predicate produced by the visibility filter
            filters: Search, category, author and tag narrowing
            page: Zero-based page number
            size: Page size
            sort_by: Sort key, see SORTABLE_COLUMNS
            direction: "asc" or "desc"

        Returns:
            Tuple of (certificates, total_count)
        """
        column = SORTABLE_COLUMNS.get(sort_by)
        if column is None:
            raise ValidationError(f"Unsupported sort field: {sort_by}", field="sort")
        if direction.lower() not in ("asc", "desc"):
            raise ValidationError(f"Unsupported sort direction: {direction}", field="direction")

        conditions = [visibility_clause, *self._filter_conditions(filters or CertificateFilters())]

        count_stmt = select(func.count()).select_from(Certificate).where(*conditions)
        total_result = await self.db.execute(count_stmt)
        total_count = total_result.scalar() or 0

        ordering = column.asc() if direction.lower() == "asc" else column.desc()
        tiebreak = Certificate.id.asc() if direction.lower() == "asc" else Certificate.id.desc()
        stmt = (
            self._with_owner()
            .where(*conditions)
            .order_by(ordering, tiebreak)
            .offset(page * size)
            .limit(size)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total_count

    async def top(
        self,
        visibility_clause: ColumnElement[bool],
        sort_by: str,
        limit: int,
    ) -> List[Certificate]:
        """Top certificates by a sort key, descending."""
        column = SORTABLE_COLUMNS[sort_by]
        stmt = (
            self._with_owner()
            .where(visibility_clause)
            .order_by(column.desc(), Certificate.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def for_owners(self, owner_ids: Iterable[UUID]) -> List[Certificate]:
        """All certificates authored by the given users, newest first."""
        owner_ids = list(owner_ids)
        if not owner_ids:
            return []
        stmt = (
            self._with_owner()
            .where(Certificate.owner_id.in_(owner_ids))
            .order_by(Certificate.created_at.desc(), Certificate.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_by_owner(self, owner_ids: Iterable[UUID]) -> Dict[UUID, int]:
        owner_ids = list(owner_ids)
        if not owner_ids:
            return {}
        stmt = (
            select(Certificate.owner_id, func.count(Certificate.id))
            .where(Certificate.owner_id.in_(owner_ids))
            .group_by(Certificate.owner_id)
        )
        result = await self.db.execute(stmt)
        return {owner_id: count for owner_id, count in result.all()}

    async def count_grouped(
        self,
        column,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, int]]:
        """Certificate counts grouped by a column, largest first."""
        count = func.count(Certificate.id)
        stmt = (
            select(column, count)
            .where(column.is_not(None))
            .group_by(column)
            .order_by(count.desc(), column)
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return [(name, total) for name, total in result.all()]

    async def completion_timeline(self) -> List[Tuple[int, int, int]]:
        """Counts of certificates per (year, month) of completion."""
        year = extract("year", Certificate.completion_date)
        month = extract("month", Certificate.completion_date)
        stmt = (
            select(year, month, func.count(Certificate.id))
            .group_by(year, month)
            .order_by(year, month)
        )
        result = await self.db.execute(stmt)
        return [(int(y), int(m), total) for y, m, total in result.all()]

    async def liked_ids(self, user_id: UUID, certificate_ids: Iterable[UUID]) -> Set[UUID]:
        """Which of the given certificates the user has liked."""
        certificate_ids = list(certificate_ids)
        if not certificate_ids:
            return set()
        stmt = select(CertificateLike.certificate_id).where(
            CertificateLike.user_id == user_id,
            CertificateLike.certificate_id.in_(certificate_ids),
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def increment_view_count(self, certificate_id: UUID) -> bool:
        """
        Atomically add one view.

        Returns:
            False when the certificate does not exist
        """
        stmt = (
            update(Certificate)
            .where(Certificate.id == certificate_id)
            .values(view_count=Certificate.view_count + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def toggle_like(self, certificate_id: UUID, user_id: UUID) -> Optional[bool]:
        """
        Flip the user's membership in the liked-by set in one transaction.

        The first statement write-locks the certificate row, so toggles on the
        same certificate are serialized. like_count is recomputed from the
        membership rows before commit.

        Returns:
            True if now liked, False if now unliked, None if the certificate
            does not exist
        """
        lock = await self.db.execute(
            update(Certificate)
            .where(Certificate.id == certificate_id)
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if lock.rowcount == 0:
            await self.db.rollback()
            return None

        removed = await self.db.execute(
            delete(CertificateLike)
            .where(
                CertificateLike.certificate_id == certificate_id,
                CertificateLike.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        )
        liked = removed.rowcount == 0
        if liked:
            await self.db.execute(
                insert(CertificateLike).values(
                    certificate_id=certificate_id,
                    user_id=user_id,
                    created_at=utcnow(),
                )
            )

        like_total = (
            select(func.count())
            .select_from(CertificateLike)
            .where(CertificateLike.certificate_id == certificate_id)
            .scalar_subquery()
        )
        await self.db.execute(
            update(Certificate)
            .where(Certificate.id == certificate_id)
            .values(like_count=like_total)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return liked

    @staticmethod
    def _filter_conditions(filters: CertificateFilters) -> List[ColumnElement[bool]]:
        conditions = []
        if filters.search and filters.search.strip():
            pattern = f"%{escape_like(filters.search.strip())}%"
            conditions.append(
                or_(
                    Certificate.title.ilike(pattern, escape="\\"),
                    Certificate.category.ilike(pattern, escape="\\"),
                    Certificate.issuer.ilike(pattern, escape="\\"),
                    cast(Certificate.tags, String).ilike(pattern, escape="\\"),
                )
            )
        if filters.category:
            conditions.append(func.lower(Certificate.category) == filters.category.strip().lower())
        if filters.owner_id:
            conditions.append(Certificate.owner_id == filters.owner_id)
        if filters.tag:
            tag_pattern = f'%"{escape_like(filters.tag.strip().lower())}"%'
            conditions.append(cast(Certificate.tags, String).like(tag_pattern, escape="\\"))
        return conditions

