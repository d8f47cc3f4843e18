"""
Authentication Schemas

Request/response models for authentication endpoints.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from app.schemas.tenant import SLUG_PATTERN


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Login request body."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class TenantRegistration(BaseModel):
    """Creates a tenant together with its first tenant_admin."""
    tenant_name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    full_name: Optional[str] = Field(None, max_length=255)

    class Config:
        json_schema_extra = {
            "example": {
                "tenant_name": "Acme Corp",
                "slug": "acme-corp",
                "email": "admin@acme.com",
                "password": "securepassword123",
                "full_name": "Ada Admin"
            }
        }
