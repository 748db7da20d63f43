"""
Authentication schemas.
"""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.domain.schemas.user import UserProfile
from app.services.auth.authorization.rbac import UserRole
from app.services.auth.token_service import IssuedToken, TokenClaims


class UserRegistration(BaseModel):
    """User registration data."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    job_title: Optional[str] = Field(None, max_length=255)
    unit: Optional[str] = Field(None, max_length=255)
    contacts_enabled: bool = True

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("unit", "job_title")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class UserLogin(BaseModel):
    """User login credentials."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(BaseModel):
    """Authenticated user with their access token."""
    user: UserProfile
    tokens: IssuedToken


class Principal(BaseModel):
    """The authenticated actor behind a request."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    role: UserRole
    unit: Optional[str] = None
    token_version: int = 0

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(
            id=claims.sub,
            email=claims.email,
            role=claims.role,
            unit=claims.unit,
            token_version=claims.ver,
        )
