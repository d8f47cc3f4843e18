"""
Task Scoper

Tasks are the only resource a plain `user` may change, and then only
the status of tasks assigned to them. Every entry point runs through
the policy; the listing variants are separate methods because they
carry different rules:

    list_for_project  tasks of one visible project
    list              everything the caller's scope allows
    list_mine         tasks assigned to the caller
    list_for_tenant   tenant_admin's tenant-wide view
    list_all          super_admin only, across tenants
"""
from typing import Any, Dict, Optional, Union

from app.core.exceptions import InvalidInputError, PermissionDenied, ProjectNotFoundError, TaskNotFoundError
from app.core.identity import CallerContext
from app.core.policy import Action, Denial, ResourceKind, decide
from app.models.task import Task, TaskStatus
from app.repositories import ProjectRepository, QueryResult, TaskRepository, UserRepository, transaction
from app.schemas.task import TaskCreate, TaskFilters, TaskUpdate
from app.services.base import ScopedService
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


class TaskService(ScopedService):
    kind = ResourceKind.TASK
    not_found = TaskNotFoundError

    def __init__(self, db):
        super().__init__(db)
        self.tasks = TaskRepository(db)
        self.projects = ProjectRepository(db)
        self.users = UserRepository(db)

    def record_attributes(self, record: Task) -> Dict[str, Any]:
        return {"assignee_id": record.assignee_id}

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _list(self, caller: CallerContext, action: Action, filters: TaskFilters, *extra) -> QueryResult:
        decision = self.authorize(caller, action)

        criteria = list(extra)
        if filters.status is not None:
            criteria.append(Task.status == filters.status.value)
        if filters.assignee_id is not None:
            criteria.append(Task.assignee_id == filters.assignee_id)
        if filters.project_id is not None:
            criteria.append(Task.project_id == filters.project_id)
        if filters.tenant_id is not None:
            criteria.append(Task.tenant_id == filters.tenant_id)

        result = self.tasks.query(
            decision.scope,
            *criteria,
            page=filters.page,
            page_size=filters.page_size,
        )
        logger.debug(f"Listed {len(result.items)} tasks ({action.value}) for user {caller.user_id}")
        return result

    def list(self, caller: CallerContext, filters: Optional[TaskFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST, filters or TaskFilters())

    def list_all(self, caller: CallerContext, filters: Optional[TaskFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST_ALL, filters or TaskFilters())

    def list_for_tenant(self, caller: CallerContext, filters: Optional[TaskFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST_TENANT, filters or TaskFilters())

    def list_mine(self, caller: CallerContext, filters: Optional[TaskFilters] = None) -> QueryResult:
        return self._list(caller, Action.LIST_MINE, filters or TaskFilters(), Task.assignee_id == caller.user_id)

    def list_for_project(
        self,
        caller: CallerContext,
        project_id: str,
        filters: Optional[TaskFilters] = None,
    ) -> QueryResult:
        self._visible_project(caller, Action.READ, project_id)
        return self._list(caller, Action.LIST, filters or TaskFilters(), Task.project_id == project_id)

    # ------------------------------------------------------------------
    # Single records
    # ------------------------------------------------------------------

    def get(self, caller: CallerContext, task_id: str) -> Task:
        task, _ = self.load(caller, Action.READ, self.tasks, task_id)
        return task

    def create(self, caller: CallerContext, project_id: str, payload: TaskCreate) -> Task:
        self.authorize(caller, Action.CREATE)
        project = self._visible_project(caller, Action.CREATE, project_id, kind=ResourceKind.TASK)

        # The task's tenant always comes from its project
        if payload.tenant_id is not None and payload.tenant_id != project.tenant_id:
            log_security_event(
                "tenant_spoof_ignored",
                {
                    "user_id": caller.user_id,
                    "tenant_id": project.tenant_id,
                    "payload_tenant": payload.tenant_id,
                    "kind": self.kind.value,
                },
                logger
            )

        if payload.assignee_id is not None:
            self._check_assignee(caller, project.tenant_id, payload.assignee_id)

        task = Task(
            tenant_id=project.tenant_id,
            project_id=project.id,
            created_by_id=caller.user_id,
            assignee_id=payload.assignee_id,
            title=payload.title,
            description=payload.description,
            status=payload.status.value,
        )

        with transaction(self.db):
            self.tasks.insert(task)

        logger.info(f"Task created: {task.id} in project {project.id} by {caller.user_id}")
        return task

    def update(self, caller: CallerContext, task_id: str, patch: TaskUpdate) -> Task:
        changes = self.changed_fields(patch)
        if not changes:
            raise InvalidInputError("No fields to update")
        if "title" in changes and changes["title"] is None:
            raise InvalidInputError("title cannot be empty")
        if "status" in changes and changes["status"] is None:
            raise InvalidInputError("status cannot be empty")

        task, decision = self.load(caller, Action.UPDATE, self.tasks, task_id)
        self.enforce_fields(decision, changes)

        if changes.get("assignee_id") is not None and changes["assignee_id"] != task.assignee_id:
            self._check_assignee(caller, task.tenant_id, changes["assignee_id"])

        with transaction(self.db):
            self.tasks.patch(task, changes)

        logger.info(f"Task updated: {task.id} by {caller.user_id}")
        return task

    def update_status(self, caller: CallerContext, task_id: str, status: Union[TaskStatus, str]) -> Task:
        """
        Narrow status transition.

        Idempotent: setting the current status again returns the task
        unchanged without writing.
        """
        try:
            status = TaskStatus(status)
        except ValueError:
            raise InvalidInputError(f"Unknown task status: {status}")

        task, decision = self.load(caller, Action.UPDATE_STATUS, self.tasks, task_id)
        self.enforce_fields(decision, ["status"])

        if task.status == status.value:
            return task

        with transaction(self.db):
            self.tasks.patch(task, {"status": status.value})

        logger.info(f"Task {task.id} moved to {status.value} by {caller.user_id}")
        return task

    def remove(self, caller: CallerContext, task_id: str) -> None:
        task, _ = self.load(caller, Action.DELETE, self.tasks, task_id)

        with transaction(self.db):
            self.tasks.delete(task)

        logger.info(f"Task deleted: {task_id} by {caller.user_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _visible_project(self, caller: CallerContext, action: Action, project_id: str, kind=ResourceKind.PROJECT):
        """Load a parent project, hiding projects of other tenants."""
        project = self.projects.find(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        self.authorize(
            caller,
            action,
            kind=kind,
            tenant_id=project.tenant_id,
            record_id=project_id,
            not_found=ProjectNotFoundError,
        )
        return project

    def _check_assignee(self, caller: CallerContext, task_tenant_id: str, assignee_id: str) -> None:
        """
        An assignee must pass the ASSIGN policy row and belong to the
        task's tenant. Users of other tenants are reported exactly like
        missing users.
        """
        assignee = self.users.find(assignee_id)
        if assignee is None:
            raise InvalidInputError(f"Assignee not found: {assignee_id}")

        decision = decide(
            caller,
            Action.ASSIGN,
            ResourceKind.TASK,
            resource_tenant_id=assignee.tenant_id,
            assignee_id=assignee.id,
        )
        if not decision.allowed:
            if decision.denial == Denial.TENANT_MISMATCH:
                log_security_event(
                    "tenant_isolation_denied",
                    {"user_id": caller.user_id, "tenant_id": caller.tenant_id, "action": "assign", "record_id": assignee_id},
                    logger
                )
                raise InvalidInputError(f"Assignee not found: {assignee_id}")
            raise PermissionDenied("Tasks can only be assigned to yourself")

        # Holds for super_admin too: no cross-tenant links
        if assignee.tenant_id != task_tenant_id:
            raise InvalidInputError(f"Assignee not found: {assignee_id}")
        if not assignee.is_active:
            raise InvalidInputError(f"Assignee is inactive: {assignee_id}")
