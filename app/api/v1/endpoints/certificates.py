"""
Certificate endpoints: listing, CRUD, likes, trending and recent.

Read endpoints accept anonymous callers and show them PUBLIC records only.
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_current_principal, get_optional_principal
from app.core.exceptions import ValidationError
from app.domain.schemas.auth import Principal
from app.domain.schemas.certificate import (
    CertificateCreate,
    CertificateListResponse,
    CertificateResponse,
    CertificateUpdate,
    LikeResponse,
)
from app.infrastructure.database.base import get_db
from app.repositories.certificate import CertificateFilters
from app.services.auth.authorization.rbac import Visibility
from app.services.certificate import CertificateService, UploadedAsset
from app.services.storage.asset_storage import AssetStorage, get_asset_storage

router = APIRouter()


def _split_values(values: Optional[List[str]]) -> Optional[List[str]]:
    """Accept repeated form fields as well as comma-separated values."""
    if values is None:
        return None
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _build(schema, **fields):
    try:
        return schema(**fields)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error.get("loc") else None
        raise ValidationError(error["msg"], field=field) from e


async def _read_upload(file: Optional[UploadFile]) -> Optional[UploadedAsset]:
    if file is None or not file.filename:
        return None
    data = await file.read()
    return UploadedAsset(data=data, filename=file.filename, content_type=file.content_type)


async def create_form(
    title: str = Form(...),
    category: str = Form(...),
    issuer: str = Form(...),
    completion_date: date = Form(...),
    subcategory: Optional[str] = Form(None),
    external_links: Optional[List[str]] = Form(None),
    remarks: Optional[str] = Form(None),
    tags: Optional[List[str]] = Form(None),
    visibility: Visibility = Form(Visibility.PUBLIC),
) -> CertificateCreate:
    return _build(
        CertificateCreate,
        title=title,
        category=category,
        issuer=issuer,
        completion_date=completion_date,
        subcategory=subcategory,
        external_links=_split_values(external_links) or [],
        remarks=remarks,
        tags=_split_values(tags) or [],
        visibility=visibility,
    )


async def update_form(
    title: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    issuer: Optional[str] = Form(None),
    completion_date: Optional[date] = Form(None),
    subcategory: Optional[str] = Form(None),
    external_links: Optional[List[str]] = Form(None),
    remarks: Optional[str] = Form(None),
    tags: Optional[List[str]] = Form(None),
    visibility: Optional[Visibility] = Form(None),
) -> CertificateUpdate:
    fields = {
        "title": title,
        "category": category,
        "issuer": issuer,
        "completion_date": completion_date,
        "subcategory": subcategory,
        "external_links": _split_values(external_links),
        "remarks": remarks,
        "tags": _split_values(tags),
        "visibility": visibility,
    }
    return _build(CertificateUpdate, **{k: v for k, v in fields.items() if v is not None})


def get_certificate_service(
    db: AsyncSession = Depends(get_db),
    storage: AssetStorage = Depends(get_asset_storage),
) -> CertificateService:
    return CertificateService(db, storage=storage)


@router.get("", response_model=CertificateListResponse)
async def list_certificates(
    page: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort: str = Query("createdAt"),
    direction: str = Query("desc"),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateListResponse:
    """
    List certificates visible to the caller.

    - **page**: zero-based page number
    - **sort**: createdAt, updatedAt, likes, views, title or completionDate
    - **search**: case-insensitive match on title, category, issuer and tags
    """
    return await service.list(
        principal,
        filters=CertificateFilters(search=search, category=category),
        page=page,
        size=size,
        sort_by=sort,
        direction=direction,
    )


@router.get("/trending/liked", response_model=List[CertificateResponse])
async def trending_liked(
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> List[CertificateResponse]:
    return await service.top(principal, "likes", settings.TOP_N_TRENDING)


@router.get("/trending/viewed", response_model=List[CertificateResponse])
async def trending_viewed(
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> List[CertificateResponse]:
    return await service.top(principal, "views", settings.TOP_N_TRENDING)


@router.get("/recent", response_model=List[CertificateResponse])
async def recent(
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> List[CertificateResponse]:
    return await service.top(principal, "createdAt", settings.RECENT_LIMIT)


@router.get("/author/{author_id}", response_model=CertificateListResponse)
async def by_author(
    author_id: UUID,
    page: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateListResponse:
    """Certificates of one author that the caller may read."""
    return await service.list(
        principal,
        filters=CertificateFilters(owner_id=author_id),
        page=page,
        size=size,
    )


@router.get("/tag/{tag}", response_model=CertificateListResponse)
async def by_tag(
    tag: str,
    page: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateListResponse:
    return await service.list(
        principal,
        filters=CertificateFilters(tag=tag),
        page=page,
        size=size,
    )


@router.get("/{certificate_id}", response_model=CertificateResponse)
async def get_certificate(
    certificate_id: UUID,
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateResponse:
    """
    Get a certificate by ID.

    Every successful read counts as one view.
    """
    return await service.get(principal, certificate_id)


@router.post("", response_model=CertificateResponse, status_code=status.HTTP_201_CREATED)
async def create_certificate(
    data: CertificateCreate = Depends(create_form),
    file: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateResponse:
    """
    Create a certificate from a multipart form with an optional file.
    """
    return await service.create(principal, data, await _read_upload(file))


@router.put("/{certificate_id}", response_model=CertificateResponse)
async def update_certificate(
    certificate_id: UUID,
    data: CertificateUpdate = Depends(update_form),
    file: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> CertificateResponse:
    """
    Update a certificate. Only the owner or an administrator may do this.

    Only the fields sent are changed. Blank form values count as not sent, so
    optional text such as subcategory or remarks can be replaced but not
    cleared.
    """
    return await service.update(principal, certificate_id, data, await _read_upload(file))


@router.delete("/{certificate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_certificate(
    certificate_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> None:
    await service.delete(principal, certificate_id)


@router.post("/{certificate_id}/like", response_model=LikeResponse)
async def toggle_like(
    certificate_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: CertificateService = Depends(get_certificate_service),
) -> LikeResponse:
    """
    Like the certificate, or remove the like if already given.
    """
    return await service.toggle_like(principal, certificate_id)
