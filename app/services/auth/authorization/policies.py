"""
Policy engine for certificate and unit access decisions.

The engine is a pure function of (principal, action, target). Rules are kept
in a table keyed by action so that every decision is explained by exactly one
rule, and a denial carries a reason that is logged but never shown to clients.
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol
from uuid import UUID

import structlog
from pydantic import BaseModel

from app.core.exceptions import AccessDeniedError

from .rbac import UNIT_OVERSIGHT_ROLES, UserRole, Visibility, has_any_role

logger = structlog.get_logger(__name__)


class PolicyAction(str, Enum):
    """Actions the policy engine can authorize."""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LIKE = "like"
    VIEW_UNIT = "view_unit"
    EXPORT_UNIT = "export_unit"
    ADMINISTER = "administer"


class PrincipalLike(Protocol):
    id: UUID
    role: UserRole
    unit: Optional[str]


class ResourceLike(Protocol):
    owner_id: UUID
    unit: Optional[str]
    visibility: Visibility


class PolicyContext(BaseModel):
    """Context for policy evaluation."""
    principal_id: Optional[UUID] = None
    principal_role: Optional[UserRole] = None
    principal_unit: Optional[str] = None

    resource_owner_id: Optional[UUID] = None
    resource_unit: Optional[str] = None
    resource_visibility: Optional[Visibility] = None

    action: PolicyAction

    @property
    def is_anonymous(self) -> bool:
        return self.principal_id is None

    @property
    def is_admin(self) -> bool:
        return self.principal_role is UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return (
            self.principal_id is not None
            and self.principal_id == self.resource_owner_id
        )


class AuthorizationResult(BaseModel):
    """Outcome of a granted policy evaluation."""
    allowed: bool
    action: PolicyAction
    rule: str


# A rule returns None when the action is allowed, or the denial reason.
PolicyRule = Callable[[PolicyContext], Optional[str]]


def _read_rule(ctx: PolicyContext) -> Optional[str]:
    if ctx.resource_visibility is Visibility.PUBLIC:
        return None
    if ctx.is_anonymous:
        return "anonymous principal cannot read non-public records"
    if ctx.is_admin:
        return None
    if ctx.resource_visibility is Visibility.PRIVATE:
        return None if ctx.is_owner else "private record readable by owner only"
    if ctx.resource_visibility is Visibility.UNIT_ONLY:
        if ctx.principal_unit is not None and ctx.principal_unit == ctx.resource_unit:
            return None
        return "unit-only record outside principal unit"
    return "unknown visibility"


def _owner_or_admin_rule(ctx: PolicyContext) -> Optional[str]:
    if ctx.is_anonymous:
        return "authentication required"
    if ctx.is_owner or ctx.is_admin:
        return None
    return "only the owner or an administrator may modify this record"


def _authenticated_rule(ctx: PolicyContext) -> Optional[str]:
    return "authentication required" if ctx.is_anonymous else None


def _unit_oversight_rule(ctx: PolicyContext) -> Optional[str]:
    if ctx.is_anonymous:
        return "authentication required"
    if has_any_role(ctx.principal_role, UNIT_OVERSIGHT_ROLES):
        return None
    return "manager or administrator role required"


def _admin_rule(ctx: PolicyContext) -> Optional[str]:
    return None if ctx.is_admin else "administrator role required"


POLICY_TABLE: Dict[PolicyAction, PolicyRule] = {
    PolicyAction.READ: _read_rule,
    PolicyAction.CREATE: _authenticated_rule,
    PolicyAction.LIKE: _authenticated_rule,
    PolicyAction.UPDATE: _owner_or_admin_rule,
    PolicyAction.DELETE: _owner_or_admin_rule,
    PolicyAction.VIEW_UNIT: _unit_oversight_rule,
    PolicyAction.EXPORT_UNIT: _unit_oversight_rule,
    PolicyAction.ADMINISTER: _admin_rule,
}


class AccessPolicy:
    """Stateless evaluator over the policy table."""

    def __init__(self, table: Optional[Dict[PolicyAction, PolicyRule]] = None):
        self.table = table or POLICY_TABLE

    def evaluate(
        self,
        principal: Optional[PrincipalLike],
        action: PolicyAction,
        resource: Optional[ResourceLike] = None,
        unit: Optional[str] = None,
        owner_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """
        Evaluate a rule without raising.

        Returns:
            None when allowed, otherwise the denial reason
        """
        ctx = self._build_context(principal, action, resource, unit, owner_id)
        rule = self.table.get(action)
        if rule is None:
            return f"no rule for action {action.value}"
        return rule(ctx)

    def authorize(
        self,
        principal: Optional[PrincipalLike],
        action: PolicyAction,
        resource: Optional[ResourceLike] = None,
        unit: Optional[str] = None,
        owner_id: Optional[UUID] = None,
    ) -> AuthorizationResult:
        """
        Authorize an action or raise.

        Raises:
            AccessDeniedError: With the reason of the refusing rule
        """
        reason = self.evaluate(principal, action, resource, unit, owner_id)
        if reason is not None:
            logger.info(
                "access_denied",
                action=action.value,
                principal_id=str(principal.id) if principal else None,
                reason=reason,
            )
            raise AccessDeniedError(reason)

        return AuthorizationResult(
            allowed=True,
            action=action,
            rule=self.table[action].__name__.strip("_"),
        )

    def can(
        self,
        principal: Optional[PrincipalLike],
        action: PolicyAction,
        resource: Optional[ResourceLike] = None,
        **kwargs: Any,
    ) -> bool:
        return self.evaluate(principal, action, resource, **kwargs) is None

    @staticmethod
    def _build_context(
        principal: Optional[PrincipalLike],
        action: PolicyAction,
        resource: Optional[ResourceLike],
        unit: Optional[str],
        owner_id: Optional[UUID],
    ) -> PolicyContext:
        return PolicyContext(
            principal_id=principal.id if principal else None,
            principal_role=UserRole(principal.role) if principal else None,
            principal_unit=principal.unit if principal else None,
            resource_owner_id=resource.owner_id if resource is not None else owner_id,
            resource_unit=resource.unit if resource is not None else unit,
            resource_visibility=(
                Visibility(resource.visibility) if resource is not None else None
            ),
            action=action,
        )


access_policy = AccessPolicy()
