"""
Schemas for certificate management.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from app.domain.schemas.user import UserSummary
from app.infrastructure.database.models import normalize_tags
from app.services.auth.authorization.rbac import Visibility


def _clean_links(links: Optional[List[str]]) -> Optional[List[str]]:
    if links is None:
        return None
    return [link.strip() for link in links if link and link.strip()]


class CertificateBase(BaseModel):
    """Base certificate schema."""
    title: str = Field(..., min_length=1, max_length=500)
    category: str = Field(..., min_length=1, max_length=255)
    subcategory: Optional[str] = Field(None, max_length=255)
    issuer: str = Field(..., min_length=1, max_length=255)
    completion_date: date
    external_links: List[str] = Field(default_factory=list)
    remarks: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    visibility: Visibility = Visibility.PUBLIC

    @field_validator("completion_date")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("Completion date cannot be in the future")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    @field_validator("external_links")
    @classmethod
    def clean_links(cls, v: List[str]) -> List[str]:
        return _clean_links(v)


class CertificateCreate(CertificateBase):
    """Schema for creating a certificate."""
    pass


class CertificateUpdate(BaseModel):
    """Schema for updating a certificate; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    subcategory: Optional[str] = Field(None, max_length=255)
    issuer: Optional[str] = Field(None, min_length=1, max_length=255)
    completion_date: Optional[date] = None
    external_links: Optional[List[str]] = None
    remarks: Optional[str] = None
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None

    @field_validator("completion_date")
    @classmethod
    def not_in_future(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v > date.today():
            raise ValueError("Completion date cannot be in the future")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else normalize_tags(v)

    @field_validator("external_links")
    @classmethod
    def clean_links(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_links(v)


class CertificateResponse(BaseModel):
    """Schema for certificate response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    category: str
    subcategory: Optional[str] = None
    issuer: str
    completion_date: date
    file_url: Optional[str] = None
    external_links: List[str] = Field(default_factory=list)
    remarks: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: UUID
    unit: Optional[str] = None
    author: Optional[UserSummary] = Field(None, validation_alias=AliasChoices("owner", "author"))
    likes: int = Field(0, validation_alias=AliasChoices("like_count", "likes"))
    views: int = Field(0, validation_alias=AliasChoices("view_count", "views"))
    visibility: Visibility
    liked_by_current_user: bool = False
    created_at: datetime
    updated_at: datetime


class CertificateListResponse(BaseModel):
    """Paginated certificate listing."""
    items: List[CertificateResponse]
    total: int
    page: int
    size: int
    has_next: bool


class LikeResponse(BaseModel):
    """Result of a like toggle."""
    certificate: CertificateResponse
    liked: bool
