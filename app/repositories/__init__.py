"""
Repositories

One repository per model. The tenant repository scopes on Tenant.id
since tenants carry no tenant_id column.
"""
from app.models import Tenant, User, Project, Task
from app.repositories.base import QueryResult, Repository, transaction


class TenantRepository(Repository):
    model = Tenant

    @property
    def tenant_column(self):
        return Tenant.id

    def find_by_slug(self, slug: str):
        return self.db.query(Tenant).filter(Tenant.slug == slug).first()


class UserRepository(Repository):
    model = User

    def find_by_email(self, email: str):
        return self.db.query(User).filter(User.email == email).first()


class ProjectRepository(Repository):
    model = Project


class TaskRepository(Repository):
    model = Task


__all__ = [
    "QueryResult",
    "Repository",
    "transaction",
    "TenantRepository",
    "UserRepository",
    "ProjectRepository",
    "TaskRepository",
]
