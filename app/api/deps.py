"""
API Dependencies

Reusable FastAPI dependencies. The caller context is resolved once per
request and handed explicitly to the services; there is no other way
for the core to learn who is calling.
"""
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.identity import CallerContext, resolve_caller
from app.services import ProjectService, TaskService, TenantService, UserService

# auto_error=False so a missing header becomes our 401, not FastAPI's default
security = HTTPBearer(auto_error=False)


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> CallerContext:
    """
    Resolve the caller from the Authorization header.

    Runs before body validation. Bodies that fail to decode at all are
    caught earlier by FastAPI; see authenticate_request for that path.
    """
    token = credentials.credentials if credentials else None
    return resolve_caller(token, db)


def get_tenant_service(db: Session = Depends(get_db)) -> TenantService:
    return TenantService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_project_service(db: Session = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


def requires_caller(route) -> bool:
    """Whether a matched route depends on get_caller anywhere in its graph."""
    dependant = getattr(route, "dependant", None)
    pending = [dependant] if dependant is not None else []
    while pending:
        current = pending.pop()
        if current.call is get_caller:
            return True
        pending.extend(current.dependencies)
    return False


def authenticate_request(request: Request) -> None:
    """
    Resolve the bearer credential of an authenticated route outside the
    dependency graph.

    FastAPI decodes the JSON body before it solves dependencies, so a
    malformed body would otherwise be reported ahead of a missing or bad
    token. Raises AuthenticationError; returns None for public routes or
    valid credentials.
    """
    if not requires_caller(request.scope.get("route")):
        return

    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials:
        raise AuthenticationError("Not authenticated")

    # Honour overrides so tests resolve against their own session
    provider = request.app.dependency_overrides.get(get_db, get_db)
    sessions = provider()
    db = next(sessions)
    try:
        resolve_caller(credentials, db)
    finally:
        sessions.close()
