"""
Manager views over an organizational unit: members, certificates, stats and
CSV exports.

Any MANAGER or ADMIN may inspect any unit; there is no check that the unit
is the caller's own, and certificate listings here are not narrowed by
visibility.
"""
from typing import List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.schemas.analytics import TopPerformer, UnitStats
from app.domain.schemas.auth import Principal
from app.domain.schemas.certificate import CertificateResponse
from app.domain.schemas.user import UserProfile, UserSummary
from app.infrastructure.database.models import Certificate
from app.repositories.certificate import CertificateRepository
from app.repositories.user import UserRepository
from app.services.auth.authorization.policies import AccessPolicy, PolicyAction, access_policy
from app.services.export.csv_exporter import CsvExporter

logger = structlog.get_logger(__name__)


class ManagerService:
    """Unit oversight for managers and administrators."""

    def __init__(
        self,
        db: AsyncSession,
        policy: Optional[AccessPolicy] = None,
        exporter: Optional[CsvExporter] = None,
    ):
        self.db = db
        self.user_repo = UserRepository(db)
        self.certificate_repo = CertificateRepository(db)
        self.policy = policy or access_policy
        self.exporter = exporter or CsvExporter()

    async def unit_members(self, principal: Optional[Principal], unit: str) -> List[UserProfile]:
        self.policy.authorize(principal, PolicyAction.VIEW_UNIT, unit=unit)
        members = await self.user_repo.find_by_unit(unit)
        return [UserProfile.model_validate(m) for m in members]

    async def unit_certificates(
        self,
        principal: Optional[Principal],
        unit: str,
    ) -> List[CertificateResponse]:
        """Certificates authored by the unit's current members."""
        self.policy.authorize(principal, PolicyAction.VIEW_UNIT, unit=unit)
        certificates = await self._unit_certificates(unit)
        return [CertificateResponse.model_validate(c) for c in certificates]

    async def unit_stats(self, principal: Optional[Principal], unit: str) -> UnitStats:
        """
        Summarize a unit.

        The top performer is the member with most certificates; on a tie the
        first member by name wins. Average is rounded to two decimals.
        """
        self.policy.authorize(principal, PolicyAction.VIEW_UNIT, unit=unit)
        members = await self.user_repo.find_by_unit(unit)
        counts = await self.certificate_repo.count_by_owner(m.id for m in members)

        total = sum(counts.values())
        average = round(total / len(members), 2) if members else 0.0
        active = sum(1 for m in members if counts.get(m.id, 0) > 0)

        top_performer = None
        if members:
            best = members[0]
            for member in members[1:]:
                if counts.get(member.id, 0) > counts.get(best.id, 0):
                    best = member
            top_performer = TopPerformer(
                **UserSummary.model_validate(best).model_dump(),
                certificates_count=counts.get(best.id, 0),
            )

        return UnitStats(
            unit_name=unit,
            total_members=len(members),
            total_certifications=total,
            average_certifications=average,
            active_learners=active,
            top_performer=top_performer,
        )

    async def export_members(self, principal: Optional[Principal], unit: str) -> bytes:
        self.policy.authorize(principal, PolicyAction.EXPORT_UNIT, unit=unit)
        members = await self.user_repo.find_by_unit(unit)
        counts = await self.certificate_repo.count_by_owner(m.id for m in members)

        logger.info("unit_members_exported", unit=unit, user_id=str(principal.id), rows=len(members))
        return self.exporter.members(members, counts)

    async def export_certificates(self, principal: Optional[Principal], unit: str) -> bytes:
        self.policy.authorize(principal, PolicyAction.EXPORT_UNIT, unit=unit)
        certificates = await self._unit_certificates(unit)

        logger.info(
            "unit_certificates_exported",
            unit=unit,
            user_id=str(principal.id),
            rows=len(certificates),
        )
        return self.exporter.certificates(certificates)

    async def _unit_certificates(self, unit: str) -> List[Certificate]:
        members = await self.user_repo.find_by_unit(unit)
        return await self.certificate_repo.for_owners(m.id for m in members)

