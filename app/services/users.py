"""
User Scoper

User management belongs to tenant_admin (own tenant) and super_admin.
Plain users are denied every action here; they read their own record
through /auth/me.

SECURITY: role changes are capped by policy.may_grant_role, so a
tenant_admin can never mint a super_admin.
"""
from typing import Optional

from app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    PermissionDenied,
    TenantNotFoundError,
    UserNotFoundError,
)
from app.core.identity import CallerContext
from app.core.policy import Action, ResourceKind, may_grant_role
from app.core.security import get_password_hash
from app.models.project import Project
from app.models.task import Task
from app.models.user import User, UserRole
from app.repositories import (
    ProjectRepository,
    QueryResult,
    TaskRepository,
    TenantRepository,
    UserRepository,
    transaction,
)
from app.schemas.user import UserCreate, UserFilters, UserUpdate
from app.services.base import ScopedService
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class UserService(ScopedService):
    kind = ResourceKind.USER
    not_found = UserNotFoundError

    def __init__(self, db):
        super().__init__(db)
        self.users = UserRepository(db)
        self.tenants = TenantRepository(db)
        self.projects = ProjectRepository(db)
        self.tasks = TaskRepository(db)

    def _list(self, caller: CallerContext, action: Action, filters: UserFilters, *extra) -> QueryResult:
        decision = self.authorize(caller, action)

        criteria = list(extra)
        if filters.role is not None:
            criteria.append(User.role == filters.role)
        if filters.is_active is not None:
            criteria.append(User.is_active == filters.is_active)
        if filters.tenant_id is not None:
            criteria.append(User.tenant_id == filters.tenant_id)

        result = self.users.query(
            decision.scope,
            *criteria,
            page=filters.page,
            page_size=filters.page_size,
        )
        logger.debug(f"Listed {len(result.items)} users for user {caller.user_id}")
        return result

    def list(self, caller: CallerContext, filters: Optional[UserFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST, filters or UserFilters())

    def list_all(self, caller: CallerContext, filters: Optional[UserFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST_ALL, filters or UserFilters())

    def list_in_tenant(
        self,
        caller: CallerContext,
        tenant_id: str,
        filters: Optional[UserFilters] = None,
    ) -> QueryResult:
        self._visible_tenant(caller, Action.LIST, tenant_id)
        return self._list(caller, Action.LIST, filters or UserFilters(), User.tenant_id == tenant_id)

    def get(self, caller: CallerContext, user_id: str) -> User:
        user, _ = self.load(caller, Action.READ, self.users, user_id)
        return user

    def create(self, caller: CallerContext, payload: UserCreate, tenant_id: Optional[str] = None) -> User:
        """
        Create a user.

        `tenant_id` is the tenant named in the URL. For tenant-bound
        callers it must be their own tenant (anything else is NotFound)
        and the payload's tenant_id is ignored.
        """
        self.authorize(caller, Action.CREATE)

        if tenant_id is None:
            tenant_id = payload.tenant_id if caller.is_super_admin else caller.tenant_id
        if not caller.is_super_admin and payload.tenant_id not in (None, tenant_id):
            log_security_event(
                "tenant_spoof_ignored",
                {
                    "user_id": caller.user_id,
                    "tenant_id": tenant_id,
                    "payload_tenant": payload.tenant_id,
                    "kind": self.kind.value,
                },
                logger
            )

        if payload.role == UserRole.SUPER_ADMIN:
            raise InvalidInputError("super_admin accounts are not bound to a tenant and cannot be created here")
        if not tenant_id:
            raise InvalidInputError("tenant_id is required")

        self._visible_tenant(caller, Action.CREATE, tenant_id)
        self._check_grant(caller, payload.role)

        if self.users.find_by_email(payload.email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            tenant_id=tenant_id,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            full_name=payload.full_name,
            role=payload.role,
            is_active=True,
        )

        with transaction(self.db):
            self.users.insert(user)

        logger.info(f"User created: {user.id} in tenant {tenant_id} by {caller.user_id}")
        return user

    def update(self, caller: CallerContext, user_id: str, patch: UserUpdate) -> User:
        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            raise InvalidInputError("No fields to update")
        for required in ("email", "role", "is_active", "password"):
            if required in changes and changes[required] is None:
                raise InvalidInputError(f"{required} cannot be empty")

        user, decision = self.load(caller, Action.UPDATE, self.users, user_id)
        self.enforce_fields(decision, changes)

        new_role = changes.get("role")
        if new_role is not None and new_role != user.role:
            self._check_grant(caller, new_role)
            if new_role == UserRole.SUPER_ADMIN or user.role == UserRole.SUPER_ADMIN:
                raise InvalidInputError("Cannot move users into or out of super_admin")

        if "email" in changes and changes["email"] != user.email:
            if self.users.find_by_email(changes["email"]) is not None:
                raise ConflictError("User with this email already exists")

        if "password" in changes:
            changes["hashed_password"] = get_password_hash(changes.pop("password"))

        with transaction(self.db):
            self.users.patch(user, changes)

        logger.info(f"User updated: {user.id} by {caller.user_id}")
        return user

    def remove(self, caller: CallerContext, user_id: str) -> None:
        """
        Delete a user. Their tasks become unassigned and their projects
        ownerless, in the same transaction as the delete.
        """
        user, _ = self.load(caller, Action.DELETE, self.users, user_id)

        if user.id == caller.user_id:
            raise InvalidInputError("Cannot delete your own account")

        with transaction(self.db):
            self.tasks.update_where({"assignee_id": None}, Task.assignee_id == user.id)
            self.tasks.update_where({"created_by_id": None}, Task.created_by_id == user.id)
            self.projects.update_where({"owner_id": None}, Project.owner_id == user.id)
            self.users.delete(user)

        logger.info(f"User deleted: {user_id} by {caller.user_id}")

    def _visible_tenant(self, caller: CallerContext, action: Action, tenant_id: str):
        tenant = self.tenants.find(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        self.authorize(
            caller,
            action,
            tenant_id=tenant.id,
            record_id=tenant_id,
            not_found=TenantNotFoundError,
        )
        return tenant

    def _check_grant(self, caller: CallerContext, role: UserRole) -> None:
        if not may_grant_role(caller, role):
            log_security_event(
                "privilege_escalation",
                {"user_id": caller.user_id, "tenant_id": caller.tenant_id, "requested_role": UserRole(role).value},
                logger
            )
            raise PermissionDenied(f"Not allowed to grant role '{UserRole(role).value}'")


def ensure_super_admin(db, email: str, password: str) -> User:
    """Create the configured super_admin if it does not exist yet."""
    existing = UserRepository(db).find_by_email(email)
    if existing is not None:
        if existing.role != UserRole.SUPER_ADMIN:
            logger.error(f"Configured super_admin email {email} belongs to a {existing.role} account")
        return existing

    user = User(
        tenant_id=None,
        email=email,
        hashed_password=get_password_hash(password),
        full_name="Super Admin",
        role=UserRole.SUPER_ADMIN,
        is_active=True,
    )
    with transaction(db):
        UserRepository(db).insert(user)

    logger.info(f"Seeded super_admin {email}")
    return user
