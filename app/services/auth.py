"""
Authentication Service

Credential checks for login. Every failure reason is logged as a
security event but reported to the client with the same generic error,
so login cannot be used to discover accounts or tenants.
"""
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError
from app.core.security import verify_password
from app.models.tenant import Tenant
from app.models.user import User
from app.repositories import TenantRepository, UserRepository, transaction
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


def authenticate(db: Session, email: str, password: str) -> User:
    users = UserRepository(db)
    user = users.find_by_email(email)

    if not user:
        log_security_event("failed_login", {"reason": "user_not_found", "email": email}, logger)
        raise AuthenticationError("Invalid credentials")

    if not verify_password(password, user.hashed_password):
        log_security_event("failed_login", {"reason": "invalid_password", "user_id": user.id}, logger)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event("failed_login", {"reason": "user_inactive", "user_id": user.id}, logger)
        raise AuthenticationError("User account is inactive")

    if user.tenant_id is not None:
        tenant: Tenant = TenantRepository(db).find(user.tenant_id)
        if tenant is None or not tenant.is_active:
            log_security_event(
                "failed_login",
                {"reason": "tenant_inactive", "user_id": user.id, "tenant_id": user.tenant_id},
                logger
            )
            raise AuthenticationError("Tenant account is inactive")

    with transaction(db):
        users.patch(user, {"last_login_at": datetime.utcnow()})

    logger.info(f"Successful login: user={user.id}, tenant={user.tenant_id}")
    return user
