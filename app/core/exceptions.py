"""
Custom Exceptions

Every error the core can produce. Each class has a fixed `kind` and
HTTP status; the handlers in app.main turn them into the error envelope.

NOTE: Out-of-scope records surface as NotFound, never Forbidden, so
callers cannot probe for other tenants' ids.
"""
from typing import Dict, Optional
from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """Base class for all typed core errors."""

    kind = "internal"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers=headers,
        )


class AuthenticationError(ServiceError):
    """Raised when the credential is missing, invalid or expired."""

    kind = "unauthenticated"
    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class PermissionDenied(ServiceError):
    """Raised when an authenticated caller is not allowed to act."""

    kind = "forbidden"
    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Permission denied"


class NotFoundError(ServiceError):
    """Raised when a record does not resolve inside the caller's scope."""

    kind = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"
    label = "Resource"

    def __init__(self, record_id: str = ""):
        super().__init__(
            detail=f"{self.label} not found: {record_id}" if record_id else f"{self.label} not found"
        )


class TenantNotFoundError(NotFoundError):
    label = "Tenant"


class UserNotFoundError(NotFoundError):
    label = "User"


class ProjectNotFoundError(NotFoundError):
    label = "Project"


class TaskNotFoundError(NotFoundError):
    label = "Task"


class ConflictError(ServiceError):
    """Raised for blocked deletes, duplicates and concurrent changes."""

    kind = "conflict"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class InvalidInputError(ServiceError):
    """Raised when input validation fails."""

    kind = "validation_error"
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InternalError(ServiceError):
    """Raised when storage fails. Not retried by the core."""
