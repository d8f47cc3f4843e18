"""
Project Model

Projects belong to one tenant and group tasks. The owner, when set,
is a user of the same tenant (enforced by the project service).
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base
import enum
import uuid


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id"),
        nullable=False,
        index=True
    )

    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        String(20),
        default=ProjectStatus.ACTIVE.value,
        nullable=False,
        index=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="projects")
    owner = relationship("User", back_populates="projects")
    # Deliberately no delete-orphan cascade: see ProjectService.remove
    tasks = relationship("Task", back_populates="project", passive_deletes="all")

    __table_args__ = (
        Index('idx_project_tenant_status', 'tenant_id', 'status'),
        Index('idx_project_tenant_name', 'tenant_id', 'name'),
    )

    def __repr__(self):
        return f"<Project {self.name} (tenant={self.tenant_id})>"
