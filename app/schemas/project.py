"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.models.project import ProjectStatus


class ProjectBase(BaseModel):
    """Base project schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectCreate(ProjectBase):
    """
    Schema for creating a project.

    tenant_id is required from super_admin and ignored for everyone else.
    """
    owner_id: Optional[str] = None
    tenant_id: Optional[str] = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    owner_id: Optional[str] = None


class ProjectFilters(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    status: Optional[ProjectStatus] = None
    owner_id: Optional[str] = None
    tenant_id: Optional[str] = None


class ProjectResponse(ProjectBase):
    """Project response schema."""
    id: str
    tenant_id: str
    owner_id: Optional[str]
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
