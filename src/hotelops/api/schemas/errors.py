"""Error response schemas for API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Stable machine-readable classification of every rejection."""

    # Authentication
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"

    # Authorization
    INACTIVE_ACCOUNT = "inactive_account"
    TENANT_INACTIVE = "tenant_inactive"
    FORBIDDEN_ORIGIN = "forbidden_origin"
    MISSING_PERMISSION = "missing_permission"
    ROLE_NOT_ALLOWED = "role_not_allowed"
    TENANT_ACCESS_DENIED = "tenant_access_denied"

    # Tenant resolution
    MISSING_TENANT_CONTEXT = "missing_tenant_context"
    INVALID_TENANT_ID = "invalid_tenant_id"
    TENANT_NOT_FOUND = "tenant_not_found"

    # Request errors
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"

    # System errors
    INTERNAL_ERROR = "internal_error"


class APIError(BaseModel):
    """Standardized API error response format.

    All API errors return this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )
    request_id: str = Field(..., description="Request ID for tracing")
    timestamp: datetime = Field(..., description="When the error occurred")

    model_config = {"json_schema_extra": {"example": {
        "error_code": "missing_permission",
        "message": "Missing permission: room:create",
        "details": {"permission": "room:create"},
        "request_id": "5f0c6a52-3c5e-4b7e-9a61-2f4d2b6a9e10",
        "timestamp": "2026-01-30T12:00:00Z",
    }}}
