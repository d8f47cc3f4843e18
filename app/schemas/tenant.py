"""
Tenant Schemas

Request/response models for tenant operations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

SLUG_PATTERN = "^[a-z0-9][a-z0-9-]*$"


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)


class TenantUpdate(BaseModel):
    """Schema for updating a tenant. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    is_active: Optional[bool] = None


class TenantFilters(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    is_active: Optional[bool] = None


class TenantResponse(BaseModel):
    id: str
    name: str
    slug: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
