"""
Tenant Management Endpoints

RBAC (see app.core.policy):
- List/create/delete tenants: super_admin
- Get tenant: own tenant, or super_admin
- Update tenant: tenant_admin (name only) or super_admin
- Users of a tenant: tenant_admin of that tenant, or super_admin
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.api.deps import get_caller, get_tenant_service, get_user_service
from app.core.identity import CallerContext
from app.core.responses import created, paginated, success
from app.models.user import UserRole
from app.schemas.tenant import TenantCreate, TenantFilters, TenantResponse, TenantUpdate
from app.schemas.user import UserCreate, UserFilters, UserResponse
from app.services.tenants import TenantService
from app.services.users import UserService

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("")
async def list_tenants(
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    service: TenantService = Depends(get_tenant_service),
):
    """List all tenants (super_admin only)."""
    filters = TenantFilters(page=page, page_size=page_size, is_active=is_active)
    result = service.list(caller, filters)
    return paginated(result.items, TenantResponse, result.total, page, page_size)


@router.post("", status_code=201)
async def create_tenant(
    payload: TenantCreate,
    caller: CallerContext = Depends(get_caller),
    service: TenantService = Depends(get_tenant_service),
):
    tenant = service.create(caller, payload)
    return created(TenantResponse.model_validate(tenant), "Tenant created")


@router.get("/{tenant_id}")
async def get_tenant(
    tenant_id: str,
    caller: CallerContext = Depends(get_caller),
    service: TenantService = Depends(get_tenant_service),
):
    return success(TenantResponse.model_validate(service.get(caller, tenant_id)))


@router.put("/{tenant_id}")
async def update_tenant(
    tenant_id: str,
    payload: TenantUpdate,
    caller: CallerContext = Depends(get_caller),
    service: TenantService = Depends(get_tenant_service),
):
    tenant = service.update(caller, tenant_id, payload)
    return success(TenantResponse.model_validate(tenant), "Tenant updated")


@router.delete("/{tenant_id}")
async def delete_tenant(
    tenant_id: str,
    caller: CallerContext = Depends(get_caller),
    cascade: bool = Query(False, description="Also remove the tenant's users, projects and tasks"),
    service: TenantService = Depends(get_tenant_service),
):
    service.remove(caller, tenant_id, cascade=cascade)
    return success(None, "Tenant deleted")


@router.get("/{tenant_id}/users")
async def list_tenant_users(
    tenant_id: str,
    caller: CallerContext = Depends(get_caller),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    service: UserService = Depends(get_user_service),
):
    filters = UserFilters(page=page, page_size=page_size, role=role, is_active=is_active)
    result = service.list_in_tenant(caller, tenant_id, filters)
    return paginated(result.items, UserResponse, result.total, page, page_size)


@router.post("/{tenant_id}/users", status_code=201)
async def add_tenant_user(
    tenant_id: str,
    payload: UserCreate,
    caller: CallerContext = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    """
    Add a user to a tenant.

    A tenant_admin can only add to its own tenant and can grant
    tenant_admin or user, never super_admin.
    """
    user = service.create(caller, payload, tenant_id=tenant_id)
    return created(UserResponse.model_validate(user), "User created")
