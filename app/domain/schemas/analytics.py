"""
Analytics and unit reporting schemas.
"""
from typing import List, Optional

from pydantic import BaseModel

from app.domain.schemas.user import UserSummary


class CountItem(BaseModel):
    """A labelled count, e.g. certificates per category."""
    name: str
    count: int


class TimelineItem(BaseModel):
    """Certificates completed in one calendar month."""
    period: str  # YYYY-MM
    count: int


class UnitShare(BaseModel):
    """Certificates held by one unit and its share of the total."""
    unit: str
    count: int
    percentage: float


class AnalyticsOverview(BaseModel):
    """Organization-wide summary."""
    total_certificates: int
    total_users: int
    total_categories: int
    total_issuers: int
    average_certificates_per_user: float
    top_categories: List[CountItem]
    top_issuers: List[CountItem]


class TopPerformer(UserSummary):
    certificates_count: int


class UnitStats(BaseModel):
    """Statistics for a single organizational unit."""
    unit_name: str
    total_members: int
    total_certifications: int
    average_certifications: float
    active_learners: int
    top_performer: Optional[TopPerformer] = None
