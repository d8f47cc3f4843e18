"""
Task Model

Tasks belong to a project and, through it, to a tenant:
    Tenant -> Project -> Task

tenant_id is duplicated from the project so listings can be scoped
without a join. The task service always copies it from the parent
project and never from the request body.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base
import enum
import uuid


class TaskStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    project_id = Column(
        String(36),
        ForeignKey("projects.id"),
        nullable=False,
        index=True
    )

    assignee_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    created_by_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        String(20),
        default=TaskStatus.OPEN.value,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="tasks")

    __table_args__ = (
        Index('idx_task_project', 'project_id', 'created_at'),
        Index('idx_task_tenant_status', 'tenant_id', 'status'),
        Index('idx_task_tenant_assignee', 'tenant_id', 'assignee_id'),
    )

    def __repr__(self):
        return f"<Task {self.title} status={self.status} (tenant={self.tenant_id})>"
