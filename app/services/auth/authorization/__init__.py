"""
Authorization for CertifyHub.

Role definitions and the access policy engine. The visibility filter lives in
``visibility`` and is imported from there directly because it depends on the
database models, which in turn depend on the role definitions here.
"""

from .policies import AccessPolicy, AuthorizationResult, PolicyAction, PolicyContext, access_policy
from .rbac import UNIT_OVERSIGHT_ROLES, UserRole, Visibility

__all__ = [
    "AccessPolicy",
    "AuthorizationResult",
    "PolicyAction",
    "PolicyContext",
    "access_policy",
    "UNIT_OVERSIGHT_ROLES",
    "UserRole",
    "Visibility",
]
