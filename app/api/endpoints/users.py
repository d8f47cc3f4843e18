"""
User Management Endpoints

Users are added through /tenants/{tenant_id}/users. These routes cover
the cross-tenant listing and per-user changes.

RBAC:
- List all users: super_admin
- Get/update/delete user: tenant_admin (own tenant) or super_admin
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.api.deps import get_caller, get_user_service
from app.core.identity import CallerContext
from app.core.responses import paginated, success
from app.models.user import UserRole
from app.schemas.user import UserFilters, UserResponse, UserUpdate
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/all")
async def list_all_users(
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    tenant_id: Optional[str] = None,
    service: UserService = Depends(get_user_service),
):
    """List users across all tenants (super_admin only)."""
    filters = UserFilters(page=page, page_size=page_size, role=role, is_active=is_active, tenant_id=tenant_id)
    result = service.list_all(caller, filters)
    return paginated(result.items, UserResponse, result.total, page, page_size)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    caller: CallerContext = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    return success(UserResponse.model_validate(service.get(caller, user_id)))


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdate,
    caller: CallerContext = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    """
    Update a user.

    SECURITY: Role changes are capped by the caller's own role.
    """
    user = service.update(caller, user_id, payload)
    return success(UserResponse.model_validate(user), "User updated")


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    caller: CallerContext = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    """
    Delete a user.

    Their tasks are unassigned and their projects lose their owner.
    """
    service.remove(caller, user_id)
    return success(None, "User deleted")
