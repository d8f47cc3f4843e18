"""
Tenant scoper tests: registration, renames and gated deletion.
"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import ConflictError, InternalError, PermissionDenied, TenantNotFoundError
from app.models import Project, Task, Tenant, User, UserRole
from app.repositories import Repository, TenantRepository, UserRepository
from app.schemas.auth import TenantRegistration
from app.schemas.tenant import TenantCreate, TenantUpdate
from app.services import TenantService


@pytest.fixture
def service(db_session) -> TenantService:
    return TenantService(db_session)


def registration(**overrides) -> TenantRegistration:
    data = {
        "tenant_name": "Acme Corp",
        "slug": "acme-corp",
        "email": "founder@acme.com",
        "password": "securepassword123",
    }
    data.update(overrides)
    return TenantRegistration(**data)


@pytest.mark.integration
class TestRegistration:

    def test_creates_tenant_and_admin(self, service) -> None:
        tenant, admin = service.register(registration())

        assert tenant.slug == "acme-corp"
        assert admin.tenant_id == tenant.id
        assert admin.role == UserRole.TENANT_ADMIN

    def test_slug_taken(self, service, db_session) -> None:
        service.register(registration())
        with pytest.raises(ConflictError):
            service.register(registration(email="other@acme.com"))
        assert db_session.query(Tenant).count() == 1

    def test_email_taken(self, service, db_session) -> None:
        service.register(registration())
        with pytest.raises(ConflictError):
            service.register(registration(slug="acme-two"))
        assert db_session.query(Tenant).count() == 1


@pytest.mark.integration
class TestTenantAccess:

    def test_members_read_own_tenant(self, service, two_tenants, as_caller) -> None:
        a = two_tenants["a"]
        assert service.get(as_caller(a["alice"]), a["tenant"].id).id == a["tenant"].id

    def test_other_tenant_is_not_found(self, service, two_tenants, as_caller) -> None:
        with pytest.raises(TenantNotFoundError):
            service.get(as_caller(two_tenants["a"]["alice"]), two_tenants["b"]["tenant"].id)

    def test_admin_renames(self, service, two_tenants, as_caller) -> None:
        a = two_tenants["a"]
        tenant = service.update(as_caller(a["admin"]), a["tenant"].id, TenantUpdate(name="Renamed"))
        assert tenant.name == "Renamed"

    def test_admin_cannot_deactivate(self, service, two_tenants, as_caller) -> None:
        a = two_tenants["a"]
        with pytest.raises(PermissionDenied):
            service.update(as_caller(a["admin"]), a["tenant"].id, TenantUpdate(is_active=False))

    def test_only_super_admin_lists_and_creates(self, service, two_tenants, as_caller) -> None:
        admin = as_caller(two_tenants["a"]["admin"])
        with pytest.raises(PermissionDenied):
            service.list(admin)
        with pytest.raises(PermissionDenied):
            service.create(admin, TenantCreate(name="Shadow", slug="shadow"))

        root = as_caller(two_tenants["root"])
        service.create(root, TenantCreate(name="Fresh", slug="fresh"))
        assert service.list(root).total == 3


@pytest.mark.integration
class TestTenantRemove:

    def test_blocked_while_data_remains(self, service, db_session, two_tenants, as_caller) -> None:
        a = two_tenants["a"]
        with pytest.raises(ConflictError):
            service.remove(as_caller(two_tenants["root"]), a["tenant"].id)
        assert db_session.get(Tenant, a["tenant"].id) is not None

    def test_cascade_removes_everything_of_that_tenant(self, service, db_session, two_tenants, as_caller) -> None:
        a, b = two_tenants["a"], two_tenants["b"]
        tenant_id = a["tenant"].id

        service.remove(as_caller(two_tenants["root"]), tenant_id, cascade=True)

        assert db_session.get(Tenant, tenant_id) is None
        assert db_session.query(User).filter(User.tenant_id == tenant_id).count() == 0
        assert db_session.query(Project).filter(Project.tenant_id == tenant_id).count() == 0
        assert db_session.query(Task).filter(Task.tenant_id == tenant_id).count() == 0
        assert db_session.query(Task).filter(Task.tenant_id == b["tenant"].id).count() == 2

    def test_admin_cannot_delete_own_tenant(self, service, two_tenants, as_caller) -> None:
        a = two_tenants["a"]
        with pytest.raises(PermissionDenied):
            service.remove(as_caller(a["admin"]), a["tenant"].id, cascade=True)


def snapshot(db_session, tenant_id: str) -> dict:
    return {
        "tenant": db_session.query(Tenant).filter(Tenant.id == tenant_id).count(),
        "users": db_session.query(User).filter(User.tenant_id == tenant_id).count(),
        "projects": db_session.query(Project).filter(Project.tenant_id == tenant_id).count(),
        "tasks": db_session.query(Task).filter(Task.tenant_id == tenant_id).count(),
    }


@pytest.mark.integration
class TestTenantCascadeRollback:
    """A failed cascade leaves the tenant and all of its data in place."""

    def test_count_mismatch_rolls_back(self, service, db_session, monkeypatch, two_tenants, as_caller) -> None:
        tenant_id = two_tenants["a"]["tenant"].id
        before = snapshot(db_session, tenant_id)

        def short_delete(self, *criteria):
            return Repository.delete_where(self, *criteria) - 1

        monkeypatch.setattr(UserRepository, "delete_where", short_delete)

        with pytest.raises(ConflictError):
            service.remove(as_caller(two_tenants["root"]), tenant_id, cascade=True)

        assert before == {"tenant": 1, "users": 3, "projects": 1, "tasks": 2}
        assert snapshot(db_session, tenant_id) == before

    def test_storage_failure_rolls_back(self, service, db_session, monkeypatch, two_tenants, as_caller) -> None:
        tenant_id = two_tenants["a"]["tenant"].id
        before = snapshot(db_session, tenant_id)

        def failing_delete(self, record):
            raise SQLAlchemyError("disk on fire")

        monkeypatch.setattr(TenantRepository, "delete", failing_delete)

        with pytest.raises(InternalError):
            service.remove(as_caller(two_tenants["root"]), tenant_id, cascade=True)

        assert snapshot(db_session, tenant_id) == before
