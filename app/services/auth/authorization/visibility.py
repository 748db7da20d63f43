"""
Visibility filter for multi-record queries.

The same read rule is available in two forms: the SQL predicate that every
listing query uses, and the post-retrieval filter that checks each record
against the policy engine. Both must select exactly the records the policy
engine would let the principal read.
"""
from typing import Iterable, List, Optional, TypeVar

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from app.infrastructure.database.models import Certificate

from .policies import AccessPolicy, PolicyAction, PrincipalLike, access_policy
from .rbac import UserRole, Visibility

T = TypeVar("T")


class VisibilityFilter:
    """Narrows certificate result sets to what a principal may read."""

    def __init__(self, policy: Optional[AccessPolicy] = None):
        self.policy = policy or access_policy

    def clause(self, principal: Optional[PrincipalLike]) -> ColumnElement[bool]:
        """Build the SQL predicate equivalent to the read rule."""
        public = Certificate.visibility == Visibility.PUBLIC
        if principal is None:
            return public
        if UserRole(principal.role) is UserRole.ADMIN:
            return true()

        private_owned = and_(
            Certificate.visibility == Visibility.PRIVATE,
            Certificate.owner_id == principal.id,
        )
        if principal.unit is None:
            same_unit = false()
        else:
            same_unit = and_(
                Certificate.visibility == Visibility.UNIT_ONLY,
                Certificate.unit == principal.unit,
            )
        return or_(public, private_owned, same_unit)

    def apply(self, principal: Optional[PrincipalLike], items: Iterable[T]) -> List[T]:
        """Keep the loaded records the principal may read, preserving order."""
        return [
            item for item in items
            if self.policy.can(principal, PolicyAction.READ, item)
        ]


visibility_filter = VisibilityFilter()
