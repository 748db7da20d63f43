"""
Database models for CertifyHub.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship, validates

from app.infrastructure.database.base import Base
from app.services.auth.authorization.rbac import UserRole, Visibility


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin for created_at and updated_at."""
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class User(Base, TimestampMixin):
    """Registered principal with profile information."""
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    name = Column(String(255), nullable=False)
    job_title = Column(String(255))
    unit = Column(String(255), index=True)
    avatar_url = Column(String(1000))
    bio = Column(Text)
    skills = Column(JSON, default=list, nullable=False)
    social_links = Column(JSON, default=dict, nullable=False)

    # Account settings
    role = Column(
        Enum(UserRole, native_enum=False, length=20),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )
    enabled = Column(Boolean, default=True, nullable=False)
    contacts_enabled = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, default=0, nullable=False)

    # Relationships
    certificates = relationship(
        "Certificate",
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if value else value


class Certificate(Base, TimestampMixin):
    """A shared certification record."""
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        Uuid,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Copied from the owner when created, never updated afterwards
    unit = Column(String(255), index=True)

    title = Column(String(500), nullable=False)
    category = Column(String(255), nullable=False, index=True)
    subcategory = Column(String(255))
    issuer = Column(String(255), nullable=False)
    completion_date = Column(Date, nullable=False)
    file_url = Column(String(1000))
    external_links = Column(JSON, default=list, nullable=False)
    remarks = Column(Text)
    tags = Column(JSON, default=list, nullable=False)

    visibility = Column(
        Enum(Visibility, native_enum=False, length=20),
        default=Visibility.PUBLIC,
        nullable=False,
    )

    # Engagement
    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="certificates")
    likes = relationship(
        "CertificateLike",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_certificate_visibility_unit", "visibility", "unit"),
        Index("idx_certificate_created", "created_at"),
    )

    @validates("tags")
    def _normalize_tags(self, key, value):
        return normalize_tags(value)


class CertificateLike(Base):
    """Membership of a principal in a certificate's liked-by set."""
    __tablename__ = "certificate_like"

    certificate_id = Column(
        Uuid,
        ForeignKey("certificate.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(
        Uuid,
        ForeignKey("user.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


def normalize_tags(tags):
    """Lowercase, strip and de-duplicate tags, keeping first-seen order."""
    seen = []
    for tag in tags or []:
        cleaned = str(tag).strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen
