"""
Certificate service: CRUD, listings and engagement wiring.
"""
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.schemas.auth import Principal
from app.domain.schemas.certificate import (
    CertificateCreate,
    CertificateListResponse,
    CertificateResponse,
    CertificateUpdate,
    LikeResponse,
)
from app.infrastructure.database.models import Certificate
from app.repositories.certificate import CertificateFilters, CertificateRepository
from app.repositories.user import UserRepository
from app.services.auth.authorization.policies import AccessPolicy, PolicyAction, access_policy
from app.services.auth.authorization.visibility import VisibilityFilter, visibility_filter
from app.services.engagement import EngagementService
from app.services.storage.asset_storage import CERTIFICATES_NAMESPACE, AssetStorage

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass
class UploadedAsset:
    """A file received with a certificate form."""
    data: bytes
    filename: str
    content_type: Optional[str] = None


class CertificateService:
    """Certificate management governed by the access policy."""

    def __init__(
        self,
        db: AsyncSession,
        storage: Optional[AssetStorage] = None,
        policy: Optional[AccessPolicy] = None,
        visibility: Optional[VisibilityFilter] = None,
    ):
        self.db = db
        self.storage = storage
        self.policy = policy or access_policy
        self.visibility = visibility or visibility_filter
        self.certificate_repo = CertificateRepository(db)
        self.user_repo = UserRepository(db)
        self.engagement = EngagementService(db)

    async def list(
        self,
        principal: Optional[Principal],
        filters: Optional[CertificateFilters] = None,
        page: int = 0,
        size: int = 10,
        sort_by: str = "createdAt",
        direction: str = "desc",
    ) -> CertificateListResponse:
        """
        List the certificates the principal may read.

        Args:
            principal: Authenticated principal or None for anonymous callers
            filters: Search, category, author and tag narrowing
            page: Zero-based page number
            size: Page size
            sort_by: Sort key
            direction: "asc" or "desc"

        Returns:
            One page of certificates
        """
        items, total = await self.certificate_repo.list_visible(
            self.visibility.clause(principal),
            filters=filters,
            page=page,
            size=size,
            sort_by=sort_by,
            direction=direction,
        )
        return CertificateListResponse(
            items=await self.to_responses(principal, items),
            total=total,
            page=page,
            size=size,
            has_next=(page + 1) * size < total,
        )

    async def top(
        self,
        principal: Optional[Principal],
        sort_by: str,
        limit: int,
    ) -> List[CertificateResponse]:
        """Trending and recent listings, narrowed by visibility."""
        items = await self.certificate_repo.top(self.visibility.clause(principal), sort_by, limit)
        return await self.to_responses(principal, items)

    async def get(self, principal: Optional[Principal], certificate_id: UUID) -> CertificateResponse:
        """
        Read one certificate and count the view.

        Raises:
            NotFoundError: If the certificate does not exist
            AccessDeniedError: If the principal may not read it
        """
        certificate = await self._load(certificate_id)
        self.policy.authorize(principal, PolicyAction.READ, certificate)

        certificate = await self.engagement.record_view(certificate_id)
        return (await self.to_responses(principal, [certificate]))[0]

    async def create(
        self,
        principal: Optional[Principal],
        data: CertificateCreate,
        asset: Optional[UploadedAsset] = None,
    ) -> CertificateResponse:
        """
        Create a certificate owned by the principal.

        The unit is taken from the owner's stored record, not from the token.
        """
        self.policy.authorize(principal, PolicyAction.CREATE)
        owner = await self.user_repo.get(principal.id)
        if owner is None:
            raise NotFoundError("User", principal.id)

        file_url = await self._upload(asset) if asset else None

        certificate = await self.certificate_repo.create({
            **data.model_dump(),
            "owner_id": owner.id,
            "unit": owner.unit,
            "file_url": file_url,
            "view_count": 0,
            "like_count": 0,
        })

        logger.info(
            "certificate_created",
            certificate_id=str(certificate.id),
            owner_id=str(owner.id),
            visibility=certificate.visibility.value,
        )
        return (await self.to_responses(principal, [certificate]))[0]

    async def update(
        self,
        principal: Optional[Principal],
        certificate_id: UUID,
        data: CertificateUpdate,
        asset: Optional[UploadedAsset] = None,
    ) -> CertificateResponse:
        """Update the fields that were sent; owner and unit never change."""
        certificate = await self._load(certificate_id)
        self.policy.authorize(principal, PolicyAction.UPDATE, certificate)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if asset:
            changes["file_url"] = await self._upload(asset)

        await self.certificate_repo.update(certificate, changes)
        certificate = await self._load(certificate_id)

        logger.info(
            "certificate_updated",
            certificate_id=str(certificate_id),
            user_id=str(principal.id),
            fields=sorted(changes),
        )
        return (await self.to_responses(principal, [certificate]))[0]

    async def delete(self, principal: Optional[Principal], certificate_id: UUID) -> None:
        certificate = await self._load(certificate_id)
        self.policy.authorize(principal, PolicyAction.DELETE, certificate)

        await self.certificate_repo.delete(certificate)
        logger.info(
            "certificate_deleted",
            certificate_id=str(certificate_id),
            user_id=str(principal.id),
        )

    async def toggle_like(self, principal: Optional[Principal], certificate_id: UUID) -> LikeResponse:
        """
        Like or unlike a certificate the principal can read.

        Raises:
            NotFoundError: If the certificate does not exist
            AccessDeniedError: If anonymous or the certificate is not readable
        """
        self.policy.authorize(principal, PolicyAction.LIKE)
        certificate = await self._load(certificate_id)
        self.policy.authorize(principal, PolicyAction.READ, certificate)

        certificate, liked = await self.engagement.toggle_like(certificate_id, principal.id)
        response = CertificateResponse.model_validate(certificate).model_copy(
            update={"liked_by_current_user": liked}
        )
        return LikeResponse(certificate=response, liked=liked)

    async def to_responses(
        self,
        principal: Optional[Principal],
        certificates: Iterable[Certificate],
    ) -> List[CertificateResponse]:
        """Serialize certificates with the principal's liked flag."""
        certificates = list(certificates)
        liked = set()
        if principal is not None:
            liked = await self.certificate_repo.liked_ids(
                principal.id, [c.id for c in certificates]
            )
        return [
            CertificateResponse.model_validate(c).model_copy(
                update={"liked_by_current_user": c.id in liked}
            )
            for c in certificates
        ]

    async def _load(self, certificate_id: UUID) -> Certificate:
        certificate = await self.certificate_repo.get_with_owner(certificate_id)
        if certificate is None:
            raise NotFoundError("Certificate", certificate_id)
        return certificate

    async def _upload(self, asset: UploadedAsset) -> str:
        if not asset.data:
            raise ValidationError("Uploaded file is empty", field="file")
        if len(asset.data) > settings.max_upload_size_bytes:
            raise ValidationError(
                f"File size exceeds maximum allowed size of {settings.MAX_UPLOAD_SIZE_MB} MB",
                field="file",
            )
        extension = PurePath(asset.filename or "").suffix.lower()
        if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
            raise ValidationError(f"File type {extension or 'unknown'} is not allowed", field="file")
        if self.storage is None:
            raise ValidationError("File uploads are not available", field="file")

        return await self.storage.upload(
            asset.data,
            asset.filename,
            namespace=CERTIFICATES_NAMESPACE,
            content_type=asset.content_type,
        )
