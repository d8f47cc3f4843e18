"""
Pytest configuration and fixtures for the task manager tests.

Settings are read once (get_settings is cached), so the environment is
prepared before anything under app/ is imported.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"  # pragma: allowlist secret

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers tables on Base.metadata
from app.core.identity import CallerContext
from app.core.security import get_password_hash, issue_token_for
from app.database import Base, get_db
from app.models import Project, Task, TaskStatus, Tenant, User, UserRole

DEFAULT_PASSWORD = "password123"  # pragma: allowlist secret


@pytest.fixture(scope="session")
def test_engine():
    """Single in-memory SQLite database shared by every connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine) -> Session:
    """Fresh schema per test."""
    Base.metadata.create_all(bind=test_engine)
    TestingSession = sessionmaker(bind=test_engine, autocommit=False, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session):
    """FastAPI test client bound to the test session."""
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Factory:
    """Builds committed records with unique names and emails."""

    def __init__(self, db: Session):
        self.db = db
        self._seq = itertools.count(1)
        self._password_hash = None

    def _save(self, record):
        self.db.add(record)
        self.db.commit()
        return record

    @property
    def password_hash(self) -> str:
        if self._password_hash is None:
            self._password_hash = get_password_hash(DEFAULT_PASSWORD)
        return self._password_hash

    def tenant(self, name=None, is_active=True) -> Tenant:
        n = next(self._seq)
        return self._save(Tenant(name=name or f"Tenant {n}", slug=f"tenant-{n}", is_active=is_active))

    def user(self, tenant=None, role=UserRole.USER, email=None, is_active=True) -> User:
        n = next(self._seq)
        return self._save(User(
            tenant_id=tenant.id if tenant is not None else None,
            email=email or f"user{n}@company{n}.com",
            hashed_password=self.password_hash,
            full_name=f"User {n}",
            role=role,
            is_active=is_active,
        ))

    def admin(self, tenant) -> User:
        return self.user(tenant, role=UserRole.TENANT_ADMIN)

    def super_admin(self) -> User:
        return self.user(None, role=UserRole.SUPER_ADMIN)

    def project(self, tenant, owner=None, name=None) -> Project:
        n = next(self._seq)
        return self._save(Project(
            tenant_id=tenant.id,
            owner_id=owner.id if owner is not None else None,
            name=name or f"Project {n}",
        ))

    def task(self, project, assignee=None, status=TaskStatus.OPEN, title=None) -> Task:
        n = next(self._seq)
        return self._save(Task(
            tenant_id=project.tenant_id,
            project_id=project.id,
            assignee_id=assignee.id if assignee is not None else None,
            title=title or f"Task {n}",
            status=status.value,
        ))


@pytest.fixture
def factory(db_session) -> Factory:
    return Factory(db_session)


def caller_of(user: User) -> CallerContext:
    return CallerContext.from_user(user)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_token_for(user)}"}


@pytest.fixture
def as_caller():
    """Turn a stored user into the CallerContext services expect."""
    return caller_of


@pytest.fixture
def headers():
    """Bearer headers for a stored user."""
    return auth_headers


@pytest.fixture
def two_tenants(factory):
    """
    Two tenants, each with an admin, two users, one project and two
    tasks (one assigned to each user).
    """
    world = {}
    for key in ("a", "b"):
        tenant = factory.tenant()
        admin = factory.admin(tenant)
        alice = factory.user(tenant)
        bob = factory.user(tenant)
        project = factory.project(tenant, owner=admin)
        world[key] = {
            "tenant": tenant,
            "admin": admin,
            "alice": alice,
            "bob": bob,
            "project": project,
            "alice_task": factory.task(project, assignee=alice),
            "bob_task": factory.task(project, assignee=bob),
        }
    world["root"] = factory.super_admin()
    return world
