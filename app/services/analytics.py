"""
Organization-wide certificate analytics.

Only aggregate counts leave this service, so no visibility narrowing is
applied to the underlying rows.
"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.schemas.analytics import AnalyticsOverview, CountItem, TimelineItem, UnitShare
from app.infrastructure.database.models import Certificate
from app.repositories.certificate import CertificateRepository
from app.repositories.user import UserRepository

TOP_ISSUERS = 10
OVERVIEW_TOP = 5


class AnalyticsService:
    """Aggregations over all certificates."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.certificate_repo = CertificateRepository(db)
        self.user_repo = UserRepository(db)

    async def categories(self) -> List[CountItem]:
        rows = await self.certificate_repo.count_grouped(Certificate.category)
        return [CountItem(name=name, count=count) for name, count in rows]

    async def issuers(self, limit: int = TOP_ISSUERS) -> List[CountItem]:
        rows = await self.certificate_repo.count_grouped(Certificate.issuer, limit=limit)
        return [CountItem(name=name, count=count) for name, count in rows]

    async def timeline(self) -> List[TimelineItem]:
        """Completions per month, oldest first, formatted as YYYY-MM."""
        rows = await self.certificate_repo.completion_timeline()
        return [
            TimelineItem(period=f"{year:04d}-{month:02d}", count=count)
            for year, month, count in rows
        ]

    async def units(self) -> List[UnitShare]:
        """Certificates per unit with their percentage of all certificates."""
        rows = await self.certificate_repo.count_grouped(Certificate.unit)
        total = sum(count for _, count in rows)
        return [
            UnitShare(
                unit=unit,
                count=count,
                percentage=round(count / total * 100, 2) if total else 0.0,
            )
            for unit, count in rows
        ]

    async def overview(self) -> AnalyticsOverview:
        total_certificates = await self.certificate_repo.count()
        total_users = await self.user_repo.count()
        categories = await self.categories()
        issuers = await self.certificate_repo.count_grouped(Certificate.issuer)

        average = round(total_certificates / total_users, 2) if total_users else 0.0
        return AnalyticsOverview(
            total_certificates=total_certificates,
            total_users=total_users,
            total_categories=len(categories),
            total_issuers=len(issuers),
            average_certificates_per_user=average,
            top_categories=categories[:OVERVIEW_TOP],
            top_issuers=[CountItem(name=n, count=c) for n, c in issuers[:OVERVIEW_TOP]],
        )
