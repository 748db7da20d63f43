"""
Manager endpoints for unit oversight and CSV exports.
"""
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_principal
from app.domain.schemas.analytics import UnitStats
from app.domain.schemas.auth import Principal
from app.domain.schemas.certificate import CertificateResponse
from app.domain.schemas.user import UserProfile
from app.infrastructure.database.base import get_db
from app.services.manager import ManagerService

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv"


def get_manager_service(db: AsyncSession = Depends(get_db)) -> ManagerService:
    return ManagerService(db)


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 5987 UTF-8 name."""
    fallback = "".join(
        c if c.isascii() and c.isprintable() and c not in '"\\' else "_" for c in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _csv_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


@router.get("/unit/{unit}/members", response_model=List[UserProfile])
async def unit_members(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> List[UserProfile]:
    return await service.unit_members(principal, unit)


@router.get("/unit/{unit}/certs", response_model=List[CertificateResponse])
async def unit_certificates(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> List[CertificateResponse]:
    """Certificates authored by the unit's current members."""
    return await service.unit_certificates(principal, unit)


@router.get("/unit/{unit}/stats", response_model=UnitStats)
async def unit_stats(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> UnitStats:
    return await service.unit_stats(principal, unit)


@router.get("/unit/{unit}/export")
async def export_unit(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> Response:
    """
    Export the unit's members as CSV.

    Kept alongside the explicit members export for older clients.
    """
    content = await service.export_members(principal, unit)
    return _csv_response(content, f"{unit}_data.csv")


@router.get("/unit/{unit}/export/members")
async def export_members(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> Response:
    content = await service.export_members(principal, unit)
    return _csv_response(content, f"{unit}_members.csv")


@router.get("/unit/{unit}/export/certificates")
async def export_certificates(
    unit: str,
    principal: Principal = Depends(get_current_principal),
    service: ManagerService = Depends(get_manager_service),
) -> Response:
    content = await service.export_certificates(principal, unit)
    return _csv_response(content, f"{unit}_certificates.csv")
