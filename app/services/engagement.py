"""
Engagement counter: view counts and like toggles.
"""
from typing import Tuple
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.infrastructure.database.models import Certificate
from app.repositories.certificate import CertificateRepository

logger = structlog.get_logger(__name__)


class EngagementService:
    """Atomic view and like mutations on certificates."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.certificate_repo = CertificateRepository(db)

    async def record_view(self, certificate_id: UUID) -> Certificate:
        """
        Count one view of a certificate.

        Every call counts; repeat visits by the same principal are not
        de-duplicated.

        Raises:
            NotFoundError: If the certificate does not exist
        """
        if not await self.certificate_repo.increment_view_count(certificate_id):
            raise NotFoundError("Certificate", certificate_id)

        certificate = await self.certificate_repo.get_with_owner(certificate_id)
        if certificate is None:
            raise NotFoundError("Certificate", certificate_id)
        return certificate

    async def toggle_like(
        self,
        certificate_id: UUID,
        principal_id: UUID,
    ) -> Tuple[Certificate, bool]:
        """
        Add or remove the principal from the certificate's liked-by set.

        Returns:
            Tuple of (refreshed certificate, whether it is now liked)

        Raises:
            NotFoundError: If the certificate does not exist
        """
        liked = await self.certificate_repo.toggle_like(certificate_id, principal_id)
        if liked is None:
            raise NotFoundError("Certificate", certificate_id)

        certificate = await self.certificate_repo.get_with_owner(certificate_id)
        if certificate is None:
            raise NotFoundError("Certificate", certificate_id)

        logger.info(
            "like_toggled",
            certificate_id=str(certificate_id),
            user_id=str(principal_id),
            liked=liked,
            like_count=certificate.like_count,
        )
        return certificate, liked
