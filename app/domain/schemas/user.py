"""
User schemas.
"""
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.services.auth.authorization.rbac import UserRole


class UserSummary(BaseModel):
    """Compact author information embedded in certificate responses."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    job_title: Optional[str] = None
    unit: Optional[str] = None
    avatar_url: Optional[str] = None


class UserProfile(UserSummary):
    """User profile data."""
    role: UserRole
    enabled: bool
    contacts_enabled: bool
    bio: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    social_links: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class UserWithStats(UserProfile):
    """User with certificate statistics."""
    certificates_count: int = 0


class UserUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    job_title: Optional[str] = Field(None, max_length=255)
    unit: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=1000)
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    social_links: Optional[Dict[str, str]] = None
    contacts_enabled: Optional[bool] = None


class AdminUserUpdate(BaseModel):
    """Account changes reserved for administrators."""
    role: Optional[UserRole] = None
    enabled: Optional[bool] = None
