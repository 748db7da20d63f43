"""
Role-Based Access Control (RBAC) primitives for CertifyHub.

Three flat roles with no inheritance, plus the visibility levels a certificate can carry.
"""
from enum import Enum
from typing import Iterable


class UserRole(str, Enum):
    """Built-in role types for CertifyHub."""
    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class Visibility(str, Enum):
    """Read scope of a certificate; administrators read every scope."""
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    UNIT_ONLY = "UNIT_ONLY"


# Roles allowed to inspect and export a unit's members and records
UNIT_OVERSIGHT_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})


def has_any_role(role: UserRole, allowed: Iterable[UserRole]) -> bool:
    """Check whether a role is one of the allowed roles."""
    return UserRole(role) in set(allowed)
