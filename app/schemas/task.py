"""
Task Schemas

Request/response models for task operations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.models.task import TaskStatus


class TaskBase(BaseModel):
    """Base task schema."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class TaskCreate(TaskBase):
    """
    Schema for creating a task under a project.

    tenant_id is accepted but never used: a task always inherits the
    tenant of its project.
    """
    status: TaskStatus = TaskStatus.OPEN
    assignee_id: Optional[str] = None
    tenant_id: Optional[str] = None


class TaskUpdate(BaseModel):
    """Schema for updating a task. All fields optional."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assignee_id: Optional[str] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskFilters(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    status: Optional[TaskStatus] = None
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    tenant_id: Optional[str] = None


class TaskResponse(TaskBase):
    """Task response schema."""
    id: str
    tenant_id: str
    project_id: str
    assignee_id: Optional[str]
    created_by_id: Optional[str]
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
