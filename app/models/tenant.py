"""
Tenant Model

The tenant is the primary isolation boundary. Every user (except
super_admin), project and task belongs to exactly one tenant.

Shared database, shared schema: isolation comes from the tenant_id
column on every child table plus the scoping done in the services.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base
import uuid


class Tenant(Base):
    __tablename__ = "tenants"

    # UUIDs avoid enumeration of other tenants
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # No ORM cascades: tenant removal is an explicit, gated operation
    users = relationship("User", back_populates="tenant", passive_deletes="all")
    projects = relationship("Project", back_populates="tenant", passive_deletes="all")

    __table_args__ = (
        Index('idx_tenant_active_slug', 'is_active', 'slug'),
    )

    def __repr__(self):
        return f"<Tenant {self.slug}>"
