"""
Authorization Policy

One pure decision function over an explicit policy table.

    decide(caller, action, kind, resource_tenant_id=..., assignee_id=...)

Evaluation order (first match wins):
    1. super_admin         -> allow, unrestricted scope
    2. tenant isolation    -> deny when the record's tenant differs from
                              the caller's (or the caller has no tenant)
    3. POLICY_TABLE lookup -> allow with the row's scope/field limits
    4. anything else       -> deny

The table is an allow-list: a (role, action, kind) triple that is not
listed is denied. No endpoint or service performs its own role checks;
they all come through here.
"""
import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from app.models.user import UserRole


class Action(str, enum.Enum):
    LIST = "list"
    LIST_ALL = "list_all"
    LIST_TENANT = "list_tenant"
    LIST_MINE = "list_mine"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    UPDATE_STATUS = "update_status"
    ASSIGN = "assign"
    DELETE = "delete"


class ResourceKind(str, enum.Enum):
    TENANT = "tenant"
    USER = "user"
    PROJECT = "project"
    TASK = "task"


class ScopeKind(str, enum.Enum):
    UNRESTRICTED = "unrestricted"
    TENANT = "tenant"
    ASSIGNEE = "assignee"
    NONE = "none"


class Denial(str, enum.Enum):
    TENANT_MISMATCH = "tenant_mismatch"
    NOT_PERMITTED = "not_permitted"


class _Unspecified:
    """Marker for 'no record attribute supplied' (None is a real value)."""

    def __repr__(self):
        return "UNSPECIFIED"


UNSPECIFIED = _Unspecified()


@dataclass(frozen=True)
class ScopeSpec:
    """
    Which records a caller may touch.

    UNRESTRICTED: every tenant
    TENANT: records with tenant_id == tenant_id
    ASSIGNEE: TENANT, further limited to records assigned to user_id
    NONE: nothing (attached to denials)
    """

    kind: ScopeKind
    tenant_id: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def unrestricted(cls) -> "ScopeSpec":
        return cls(ScopeKind.UNRESTRICTED)

    @classmethod
    def tenant(cls, tenant_id: str) -> "ScopeSpec":
        return cls(ScopeKind.TENANT, tenant_id=tenant_id)

    @classmethod
    def assignee(cls, tenant_id: str, user_id: str) -> "ScopeSpec":
        return cls(ScopeKind.ASSIGNEE, tenant_id=tenant_id, user_id=user_id)

    @classmethod
    def nothing(cls) -> "ScopeSpec":
        return cls(ScopeKind.NONE)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    scope: ScopeSpec
    # Patchable fields; None means no field restriction
    fields: Optional[FrozenSet[str]] = None
    denial: Optional[Denial] = None

    @classmethod
    def deny(cls, denial: Denial) -> "Decision":
        return cls(False, ScopeSpec.nothing(), denial=denial)


@dataclass(frozen=True)
class Grant:
    """One row of the policy table."""

    scope: ScopeKind = ScopeKind.TENANT
    fields: Optional[FrozenSet[str]] = None


TENANT_SCOPED = Grant()
ASSIGNED_ONLY = Grant(ScopeKind.ASSIGNEE)
STATUS_ONLY = Grant(ScopeKind.ASSIGNEE, fields=frozenset({"status"}))

_ADMIN_MANAGED = (ResourceKind.USER, ResourceKind.PROJECT, ResourceKind.TASK)
_ADMIN_ACTIONS = (Action.LIST, Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE)

PolicyKey = Tuple[UserRole, Action, ResourceKind]

POLICY_TABLE: Dict[PolicyKey, Grant] = {
    # tenant_admin: full management inside its own tenant
    **{
        (UserRole.TENANT_ADMIN, action, kind): TENANT_SCOPED
        for action in _ADMIN_ACTIONS
        for kind in _ADMIN_MANAGED
    },
    (UserRole.TENANT_ADMIN, Action.LIST_TENANT, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.TENANT_ADMIN, Action.LIST_MINE, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.TENANT_ADMIN, Action.UPDATE_STATUS, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.TENANT_ADMIN, Action.ASSIGN, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.TENANT_ADMIN, Action.READ, ResourceKind.TENANT): TENANT_SCOPED,
    (UserRole.TENANT_ADMIN, Action.UPDATE, ResourceKind.TENANT): Grant(fields=frozenset({"name"})),

    # user: read the tenant's work, create tasks, move its own tasks along
    (UserRole.USER, Action.READ, ResourceKind.TENANT): TENANT_SCOPED,
    (UserRole.USER, Action.LIST, ResourceKind.PROJECT): TENANT_SCOPED,
    (UserRole.USER, Action.READ, ResourceKind.PROJECT): TENANT_SCOPED,
    (UserRole.USER, Action.LIST, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.USER, Action.READ, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.USER, Action.LIST_MINE, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.USER, Action.CREATE, ResourceKind.TASK): TENANT_SCOPED,
    (UserRole.USER, Action.UPDATE, ResourceKind.TASK): STATUS_ONLY,
    (UserRole.USER, Action.UPDATE_STATUS, ResourceKind.TASK): STATUS_ONLY,
    (UserRole.USER, Action.ASSIGN, ResourceKind.TASK): ASSIGNED_ONLY,
}

# Roles each role may hand out when creating or updating users
GRANTABLE_ROLES: Dict[UserRole, FrozenSet[UserRole]] = {
    UserRole.SUPER_ADMIN: frozenset(UserRole),
    UserRole.TENANT_ADMIN: frozenset({UserRole.TENANT_ADMIN, UserRole.USER}),
    UserRole.USER: frozenset(),
}


def decide(
    caller,
    action: Action,
    kind: ResourceKind,
    resource_tenant_id=UNSPECIFIED,
    assignee_id=UNSPECIFIED,
) -> Decision:
    """
    Decide whether `caller` may perform `action` on `kind`.

    Args:
        caller: anything with user_id, tenant_id and role (CallerContext)
        resource_tenant_id: tenant of the stored record (or of the
            record being created). Leave unspecified for role-level checks.
        assignee_id: assignee of the stored task, or the proposed
            assignee for Action.ASSIGN. Leave unspecified when unknown.
    """
    role = UserRole(caller.role)

    if role == UserRole.SUPER_ADMIN:
        return Decision(True, ScopeSpec.unrestricted())

    if caller.tenant_id is None:
        return Decision.deny(Denial.TENANT_MISMATCH)
    if resource_tenant_id is not UNSPECIFIED and resource_tenant_id != caller.tenant_id:
        return Decision.deny(Denial.TENANT_MISMATCH)

    grant = POLICY_TABLE.get((role, action, kind))
    if grant is None:
        return Decision.deny(Denial.NOT_PERMITTED)

    if grant.scope == ScopeKind.ASSIGNEE:
        if assignee_id is not UNSPECIFIED and assignee_id != caller.user_id:
            return Decision.deny(Denial.NOT_PERMITTED)
        return Decision(True, ScopeSpec.assignee(caller.tenant_id, caller.user_id), fields=grant.fields)

    return Decision(True, ScopeSpec.tenant(caller.tenant_id), fields=grant.fields)


def may_grant_role(caller, role: UserRole) -> bool:
    """Whether `caller` may create a user with, or change a user to, `role`."""
    return UserRole(role) in GRANTABLE_ROLES.get(UserRole(caller.role), frozenset())
