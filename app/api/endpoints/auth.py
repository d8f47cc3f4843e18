"""
Authentication Endpoints

Tenant registration, login, current-user lookup and logout.
Tokens are stateless JWTs; logout only tells the client to drop its copy.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.api.deps import get_caller, get_tenant_service
from app.core.identity import CallerContext
from app.core.responses import created, success
from app.core.security import issue_token_for
from app.core.exceptions import AuthenticationError
from app.repositories import UserRepository
from app.schemas.auth import LoginRequest, TenantRegistration, Token
from app.schemas.tenant import TenantResponse
from app.schemas.user import UserResponse
from app.services.auth import authenticate
from app.services.tenants import TenantService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register-tenant", status_code=201)
async def register_tenant(
    registration: TenantRegistration,
    service: TenantService = Depends(get_tenant_service),
):
    """
    Register a new tenant and its first tenant_admin.

    Returns the tenant, the admin user and a token for the admin.
    """
    tenant, admin = service.register(registration)
    return created(
        {
            "tenant": TenantResponse.model_validate(tenant),
            "user": UserResponse.model_validate(admin),
            "token": Token(access_token=issue_token_for(admin)),
        },
        "Tenant registered"
    )


@router.post("/login")
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
):
    """Authenticate by email and password and return a bearer token."""
    user = authenticate(db, credentials.email, credentials.password)
    return success({
        "token": Token(access_token=issue_token_for(user)),
        "user": UserResponse.model_validate(user),
    })


@router.get("/me")
async def me(
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Return the authenticated caller's own record."""
    user = UserRepository(db).find(caller.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return success(UserResponse.model_validate(user))


@router.post("/logout")
async def logout(caller: CallerContext = Depends(get_caller)):
    """
    Stateless logout.

    NOTE: Tokens stay valid until they expire. A revocation list would
    be needed to cut them off earlier.
    """
    logger.info(f"Logout: user={caller.user_id}")
    return success(None, "Logged out")
