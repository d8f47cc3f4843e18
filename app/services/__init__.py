"""
Resource Scopers

Each service applies the authorization policy's scope to a request
before it reaches storage.
"""
from app.services.projects import ProjectService
from app.services.tasks import TaskService
from app.services.tenants import TenantService
from app.services.users import UserService

__all__ = ["ProjectService", "TaskService", "TenantService", "UserService"]
