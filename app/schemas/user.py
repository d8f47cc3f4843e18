"""
User Schemas

Request/response models for user operations.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from app.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    full_name: Optional[str] = None


class UserCreate(UserBase):
    """
    Schema for creating a new user.

    tenant_id is honoured only for super_admin callers; everyone else
    creates users in their own tenant.
    """
    password: str = Field(..., min_length=8, max_length=100)
    role: UserRole = UserRole.USER
    tenant_id: Optional[str] = None


class UserUpdate(BaseModel):
    """Schema for updating a user. All fields optional."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8, max_length=100)


class UserFilters(BaseModel):
    """Listing filters. Applied on top of the caller's scope."""
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    tenant_id: Optional[str] = None


class UserResponse(UserBase):
    """User response schema (excludes sensitive data)."""
    id: str
    tenant_id: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # Allows creating from ORM models
