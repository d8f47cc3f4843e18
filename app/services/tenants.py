"""
Tenant Scoper

Listing, creating and deleting tenants is super_admin work. A
tenant_admin can read its own tenant and rename it; a user can read it.

Registration is the one unauthenticated path: it creates a tenant
together with its first tenant_admin in a single transaction.
"""
from typing import Optional, Tuple

from app.core.exceptions import ConflictError, InvalidInputError, TenantNotFoundError
from app.core.identity import CallerContext
from app.core.policy import Action, ResourceKind
from app.core.security import get_password_hash
from app.models.project import Project
from app.models.task import Task
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.repositories import (
    ProjectRepository,
    QueryResult,
    TaskRepository,
    TenantRepository,
    UserRepository,
    transaction,
)
from app.schemas.auth import TenantRegistration
from app.schemas.tenant import TenantCreate, TenantFilters, TenantUpdate
from app.services.base import ScopedService
from app.utils.logging import get_logger

logger = get_logger(__name__)


class TenantService(ScopedService):
    kind = ResourceKind.TENANT
    not_found = TenantNotFoundError

    def __init__(self, db):
        super().__init__(db)
        self.tenants = TenantRepository(db)
        self.users = UserRepository(db)
        self.projects = ProjectRepository(db)
        self.tasks = TaskRepository(db)

    def tenant_of(self, record: Tenant) -> Optional[str]:
        return record.id

    def list(self, caller: CallerContext, filters: Optional[TenantFilters] = None) -> QueryResult:
        filters = filters or TenantFilters()
        decision = self.authorize(caller, Action.LIST)

        criteria = []
        if filters.is_active is not None:
            criteria.append(Tenant.is_active == filters.is_active)

        return self.tenants.query(
            decision.scope,
            *criteria,
            page=filters.page,
            page_size=filters.page_size,
        )

    def get(self, caller: CallerContext, tenant_id: str) -> Tenant:
        tenant, _ = self.load(caller, Action.READ, self.tenants, tenant_id)
        return tenant

    def create(self, caller: CallerContext, payload: TenantCreate) -> Tenant:
        self.authorize(caller, Action.CREATE)
        self._check_slug(payload.slug)

        tenant = Tenant(name=payload.name, slug=payload.slug)
        with transaction(self.db):
            self.tenants.insert(tenant)

        logger.info(f"Tenant created: {tenant.slug} ({tenant.id}) by {caller.user_id}")
        return tenant

    def update(self, caller: CallerContext, tenant_id: str, patch: TenantUpdate) -> Tenant:
        changes = self.changed_fields(patch)
        if not changes:
            raise InvalidInputError("No fields to update")
        for required in ("name", "is_active"):
            if required in changes and changes[required] is None:
                raise InvalidInputError(f"{required} cannot be empty")

        tenant, decision = self.load(caller, Action.UPDATE, self.tenants, tenant_id)
        self.enforce_fields(decision, changes)

        with transaction(self.db):
            self.tenants.patch(tenant, changes)

        logger.info(f"Tenant updated: {tenant.id} by {caller.user_id}")
        return tenant

    def remove(self, caller: CallerContext, tenant_id: str, cascade: bool = False) -> None:
        """
        Delete a tenant.

        Blocked with ConflictError while it still has users or projects,
        unless cascade=True, in which case tasks, projects, users and the
        tenant are removed in one transaction.
        """
        tenant, _ = self.load(caller, Action.DELETE, self.tenants, tenant_id)

        counts = {
            "tasks": self.tasks.count(Task.tenant_id == tenant.id),
            "projects": self.projects.count(Project.tenant_id == tenant.id),
            "users": self.users.count(User.tenant_id == tenant.id),
        }
        if (counts["projects"] or counts["users"]) and not cascade:
            raise ConflictError(
                f"Tenant still has {counts['users']} user(s) and {counts['projects']} project(s); "
                "remove them first or delete with cascade"
            )

        with transaction(self.db):
            removed = {
                "tasks": self.tasks.delete_where(Task.tenant_id == tenant.id),
                "projects": self.projects.delete_where(Project.tenant_id == tenant.id),
                "users": self.users.delete_where(User.tenant_id == tenant.id),
            }
            if removed != counts:
                raise ConflictError("Tenant data changed during delete; nothing was removed")
            self.tenants.delete(tenant)

        logger.info(f"Tenant deleted: {tenant_id} ({counts}) by {caller.user_id}")

    def register(self, payload: TenantRegistration) -> Tuple[Tenant, User]:
        """Create a tenant and its first tenant_admin."""
        self._check_slug(payload.slug)
        if self.users.find_by_email(payload.email) is not None:
            raise ConflictError("User with this email already exists")

        tenant = Tenant(name=payload.tenant_name, slug=payload.slug)
        admin = User(
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            full_name=payload.full_name,
            role=UserRole.TENANT_ADMIN,
            is_active=True,
        )

        with transaction(self.db):
            self.tenants.insert(tenant)
            admin.tenant_id = tenant.id
            self.users.insert(admin)

        logger.info(f"Tenant registered: {tenant.slug} ({tenant.id}) with admin {admin.id}")
        return tenant, admin

    def _check_slug(self, slug: str) -> None:
        if self.tenants.find_by_slug(slug) is not None:
            raise ConflictError(f"Tenant slug already taken: {slug}")
