"""
Identity Context

Resolves the caller behind a bearer credential into a CallerContext.
Resolution only reads: it never touches last-login timestamps or any
other caller state.

The context is passed explicitly into every service call; nothing in
the core looks up "the current user" from global state.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError
from app.core.security import decode_access_token
from app.models.user import User, UserRole
from app.models.tenant import Tenant
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class CallerContext:
    """Who is calling: user id, tenant (None for super_admin) and role."""

    user_id: str
    tenant_id: Optional[str]
    role: UserRole

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "CallerContext":
        return cls(user_id=user.id, tenant_id=user.tenant_id, role=UserRole(user.role))


def resolve_caller(token: Optional[str], db: Session) -> CallerContext:
    """
    Resolve a bearer token to a CallerContext.

    Raises AuthenticationError when the token is missing, invalid or
    expired, when the user is gone or inactive, when the token's tenant
    claim disagrees with the stored user, or when the tenant is inactive.
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"Token for unknown user: {user_id}")
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    # A token minted for one tenant must not keep working after the
    # user has been moved or recreated elsewhere.
    if payload.get("tenant_id") != user.tenant_id:
        log_security_event(
            "token_tenant_mismatch",
            {"user_id": user.id, "token_tenant": payload.get("tenant_id"), "user_tenant": user.tenant_id},
            logger
        )
        raise AuthenticationError("Token tenant mismatch")

    if user.tenant_id is not None:
        tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).first()
        if not tenant or not tenant.is_active:
            raise AuthenticationError("Tenant account is inactive")
    elif user.role != UserRole.SUPER_ADMIN:
        # Only super_admin may exist without a tenant
        logger.error(f"User {user.id} has no tenant but role {user.role}")
        raise AuthenticationError("User has no tenant")

    return CallerContext.from_user(user)
