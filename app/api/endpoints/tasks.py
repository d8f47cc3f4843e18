"""
Task Endpoints

The three listing routes are separate entry points, not query flags,
because each carries its own rule:
- /tasks/my      tasks assigned to the caller (any role)
- /tasks/tenant  tenant-wide view (tenant_admin)
- /tasks/all     every tenant (super_admin)

A plain user can change only the status of tasks assigned to them,
through PUT with {"status": ...} or PATCH /tasks/{id}/status.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.api.deps import get_caller, get_task_service
from app.core.identity import CallerContext
from app.core.responses import paginated, success
from app.models.task import TaskStatus
from app.schemas.task import TaskFilters, TaskResponse, TaskStatusUpdate, TaskUpdate
from app.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _filters(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[TaskStatus] = None,
    assignee_id: Optional[str] = None,
    project_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
) -> TaskFilters:
    return TaskFilters(
        page=page,
        page_size=page_size,
        status=status,
        assignee_id=assignee_id,
        project_id=project_id,
        tenant_id=tenant_id,
    )


@router.get("/all")
async def list_all_tasks(
    caller: CallerContext = Depends(get_caller),
    filters: TaskFilters = Depends(_filters),
    service: TaskService = Depends(get_task_service),
):
    result = service.list_all(caller, filters)
    return paginated(result.items, TaskResponse, result.total, filters.page, filters.page_size)


@router.get("/tenant")
async def list_tenant_tasks(
    caller: CallerContext = Depends(get_caller),
    filters: TaskFilters = Depends(_filters),
    service: TaskService = Depends(get_task_service),
):
    result = service.list_for_tenant(caller, filters)
    return paginated(result.items, TaskResponse, result.total, filters.page, filters.page_size)


@router.get("/my")
async def list_my_tasks(
    caller: CallerContext = Depends(get_caller),
    filters: TaskFilters = Depends(_filters),
    service: TaskService = Depends(get_task_service),
):
    result = service.list_mine(caller, filters)
    return paginated(result.items, TaskResponse, result.total, filters.page, filters.page_size)


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    caller: CallerContext = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    return success(TaskResponse.model_validate(service.get(caller, task_id)))


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    caller: CallerContext = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    """
    Update a task.

    Fields the caller may not change are rejected with 403, not dropped.
    """
    task = service.update(caller, task_id, payload)
    return success(TaskResponse.model_validate(task), "Task updated")


@router.patch("/{task_id}/status")
async def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    caller: CallerContext = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    """Move a task to a new status. Repeating the same status is a no-op."""
    task = service.update_status(caller, task_id, payload.status)
    return success(TaskResponse.model_validate(task), "Task status updated")


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    caller: CallerContext = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    service.remove(caller, task_id)
    return success(None, "Task deleted")
