"""
Domain schemas for CertifyHub application.
"""

from .analytics import *
from .auth import *
from .certificate import *
from .user import *

__all__ = [
    # Auth schemas
    "UserRegistration",
    "UserLogin",
    "AuthResponse",
    "Principal",

    # User schemas
    "UserSummary",
    "UserProfile",
    "UserWithStats",
    "UserUpdate",
    "AdminUserUpdate",

    # Certificate schemas
    "CertificateCreate",
    "CertificateUpdate",
    "CertificateResponse",
    "CertificateListResponse",
    "LikeResponse",

    # Analytics schemas
    "CountItem",
    "TimelineItem",
    "UnitShare",
    "AnalyticsOverview",
    "TopPerformer",
    "UnitStats",
]
