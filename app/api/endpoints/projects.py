"""
Project Management Endpoints

RBAC (see app.core.policy):
- List/view projects: every role, scoped to its tenant
- List all projects: super_admin
- Create/update/delete: tenant_admin (own tenant) or super_admin

Tasks of a project are created and listed under /projects/{id}/tasks.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.api.deps import get_caller, get_project_service, get_task_service
from app.core.identity import CallerContext
from app.core.responses import created, paginated, success
from app.models.project import ProjectStatus
from app.models.task import TaskStatus
from app.schemas.project import ProjectCreate, ProjectFilters, ProjectResponse, ProjectUpdate
from app.schemas.task import TaskCreate, TaskFilters, TaskResponse
from app.services.projects import ProjectService
from app.services.tasks import TaskService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[ProjectStatus] = None,
    owner_id: Optional[str] = None,
    service: ProjectService = Depends(get_project_service),
):
    """List projects visible to the caller (own tenant; all for super_admin)."""
    filters = ProjectFilters(page=page, page_size=page_size, status=status, owner_id=owner_id)
    result = service.list(caller, filters)
    return paginated(result.items, ProjectResponse, result.total, page, page_size)


@router.get("/all")
async def list_all_projects(
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[ProjectStatus] = None,
    tenant_id: Optional[str] = None,
    service: ProjectService = Depends(get_project_service),
):
    """List projects across all tenants (super_admin only)."""
    filters = ProjectFilters(page=page, page_size=page_size, status=status, tenant_id=tenant_id)
    result = service.list_all(caller, filters)
    return paginated(result.items, ProjectResponse, result.total, page, page_size)


@router.post("", status_code=201)
async def create_project(
    payload: ProjectCreate,
    caller: CallerContext = Depends(get_caller),
    service: ProjectService = Depends(get_project_service),
):
    """
    Create a project.

    The caller becomes the owner unless owner_id names another user of
    the same tenant.
    """
    project = service.create(caller, payload)
    return created(ProjectResponse.model_validate(project), "Project created")


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    caller: CallerContext = Depends(get_caller),
    service: ProjectService = Depends(get_project_service),
):
    return success(ProjectResponse.model_validate(service.get(caller, project_id)))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    caller: CallerContext = Depends(get_caller),
    service: ProjectService = Depends(get_project_service),
):
    project = service.update(caller, project_id, payload)
    return success(ProjectResponse.model_validate(project), "Project updated")


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    caller: CallerContext = Depends(get_caller),
    cascade: bool = Query(False, description="Also delete the project's tasks"),
    service: ProjectService = Depends(get_project_service),
):
    """
    Delete a project.

    Returns 409 while the project still has tasks, unless cascade=true.
    """
    removed = service.remove(caller, project_id, cascade=cascade)
    return success({"tasks_removed": removed}, "Project deleted")


@router.get("/{project_id}/tasks")
async def list_project_tasks(
    project_id: str,
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[TaskStatus] = None,
    assignee_id: Optional[str] = None,
    service: TaskService = Depends(get_task_service),
):
    filters = TaskFilters(page=page, page_size=page_size, status=status, assignee_id=assignee_id)
    result = service.list_for_project(caller, project_id, filters)
    return paginated(result.items, TaskResponse, result.total, page, page_size)


@router.post("/{project_id}/tasks", status_code=201)
async def create_project_task(
    project_id: str,
    payload: TaskCreate,
    caller: CallerContext = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    """
    Create a task in a project.

    TENANT_ISOLATION: The task takes the project's tenant; any tenant_id
    in the body is ignored.
    """
    task = service.create(caller, project_id, payload)
    return created(TaskResponse.model_validate(task), "Task created")
