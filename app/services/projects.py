"""
Project Scoper

Projects are created and managed by tenant_admin (own tenant) and
super_admin (any tenant). Users can only see them.

DELETE POLICY: a project that still has tasks is not removed unless the
caller passes cascade=True. With cascade, tasks and project go in one
transaction; if the number of tasks removed differs from the number
counted beforehand, everything is rolled back and ConflictError raised.
"""
from typing import Optional

from app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    ProjectNotFoundError,
    TenantNotFoundError,
)
from app.core.identity import CallerContext
from app.core.policy import Action, ResourceKind
from app.models.project import Project
from app.models.task import Task
from app.repositories import (
    ProjectRepository,
    QueryResult,
    TaskRepository,
    TenantRepository,
    UserRepository,
    transaction,
)
from app.schemas.project import ProjectCreate, ProjectFilters, ProjectUpdate
from app.services.base import ScopedService
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class ProjectService(ScopedService):
    kind = ResourceKind.PROJECT
    not_found = ProjectNotFoundError

    def __init__(self, db):
        super().__init__(db)
        self.projects = ProjectRepository(db)
        self.tasks = TaskRepository(db)
        self.tenants = TenantRepository(db)
        self.users = UserRepository(db)

    def _list(self, caller: CallerContext, action: Action, filters: ProjectFilters) -> QueryResult:
        decision = self.authorize(caller, action)

        criteria = []
        if filters.status is not None:
            criteria.append(Project.status == filters.status.value)
        if filters.owner_id is not None:
            criteria.append(Project.owner_id == filters.owner_id)
        if filters.tenant_id is not None:
            criteria.append(Project.tenant_id == filters.tenant_id)

        result = self.projects.query(
            decision.scope,
            *criteria,
            page=filters.page,
            page_size=filters.page_size,
        )
        logger.debug(f"Listed {len(result.items)} projects for user {caller.user_id}")
        return result

    def list(self, caller: CallerContext, filters: Optional[ProjectFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST, filters or ProjectFilters())

    def list_all(self, caller: CallerContext, filters: Optional[ProjectFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST_ALL, filters or ProjectFilters())

    def get(self, caller: CallerContext, project_id: str) -> Project:
        project, _ = self.load(caller, Action.READ, self.projects, project_id)
        return project

    def create(self, caller: CallerContext, payload: ProjectCreate) -> Project:
        self.authorize(caller, Action.CREATE)

        if caller.is_super_admin:
            if not payload.tenant_id:
                raise InvalidInputError("tenant_id is required")
            if self.tenants.find(payload.tenant_id) is None:
                raise TenantNotFoundError(payload.tenant_id)
            tenant_id = payload.tenant_id
        else:
            # Body tenant is never trusted for tenant-bound callers
            tenant_id = caller.tenant_id
            if payload.tenant_id is not None and payload.tenant_id != tenant_id:
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

        self.authorize(caller, Action.CREATE, tenant_id=tenant_id)

        if payload.owner_id is not None:
            owner_id = self._check_owner(tenant_id, payload.owner_id)
        else:
            owner_id = caller.user_id if caller.tenant_id == tenant_id else None

        project = Project(
            tenant_id=tenant_id,
            owner_id=owner_id,
            name=payload.name,
            description=payload.description,
        )

        with transaction(self.db):
            self.projects.insert(project)

        logger.info(f"Project created: {project.id} in tenant {tenant_id} by {caller.user_id}")
        return project

    def update(self, caller: CallerContext, project_id: str, patch: ProjectUpdate) -> Project:
        changes = self.changed_fields(patch)
        if not changes:
            raise InvalidInputError("No fields to update")
        for required in ("name", "status"):
            if required in changes and changes[required] is None:
                raise InvalidInputError(f"{required} cannot be empty")

        project, decision = self.load(caller, Action.UPDATE, self.projects, project_id)
        self.enforce_fields(decision, changes)

        if changes.get("owner_id") is not None:
            self._check_owner(project.tenant_id, changes["owner_id"])

        with transaction(self.db):
            self.projects.patch(project, changes)

        logger.info(f"Project updated: {project.id} by {caller.user_id}")
        return project

    def remove(self, caller: CallerContext, project_id: str, cascade: bool = False) -> int:
        """
        Delete a project. Returns the number of tasks removed with it.

        Raises ConflictError while tasks remain and cascade is False.
        """
        project, _ = self.load(caller, Action.DELETE, self.projects, project_id)

        task_count = self.tasks.count(Task.project_id == project.id)
        if task_count and not cascade:
            raise ConflictError(
                f"Project has {task_count} task(s); remove them first or delete with cascade"
            )

        with transaction(self.db):
            removed = self.tasks.delete_where(Task.project_id == project.id)
            if removed != task_count:
                # Tasks were added or removed concurrently; undo everything
                raise ConflictError("Project tasks changed during delete; nothing was removed")
            self.projects.delete(project)

        logger.info(f"Project deleted: {project_id} with {removed} task(s) by {caller.user_id}")
        return removed

    def _check_owner(self, tenant_id: str, owner_id: str) -> str:
        owner = self.users.find(owner_id)
        if owner is None or owner.tenant_id != tenant_id:
            raise InvalidInputError(f"Owner not found: {owner_id}")
        return owner.id
