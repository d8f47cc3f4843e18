"""
Database Models

Every model except Tenant carries tenant_id for isolation.
"""
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.models.project import Project, ProjectStatus
from app.models.task import Task, TaskStatus

__all__ = ["Tenant", "User", "UserRole", "Project", "ProjectStatus", "Task", "TaskStatus"]
