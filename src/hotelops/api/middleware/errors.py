"""Error handling middleware for mapping exceptions to HTTP responses."""

from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from hotelops.api.schemas.errors import APIError, ErrorCode
from hotelops.config.settings import get_settings
from hotelops.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenOriginError,
    InactiveAccountError,
    InvalidCredentialError,
    InvalidTenantIdError,
    MissingCredentialError,
    MissingTenantContextError,
    PermissionDeniedError,
    ResourceNotFoundError,
    RoleNotAllowedError,
    TenantAccessDeniedError,
    TenantInactiveError,
    TenantNotFoundError,
    ValidationFailedError,
)

logger = structlog.get_logger(__name__)

# Exception to HTTP status/error code mapping, most specific first
# Format: Exception -> (status_code, error_code)
EXCEPTION_MAP: dict[type[Exception], tuple[int, str]] = {
    MissingCredentialError: (401, ErrorCode.MISSING_CREDENTIAL.value),
    InvalidCredentialError: (401, ErrorCode.INVALID_CREDENTIAL.value),
    AuthenticationError: (401, ErrorCode.INVALID_CREDENTIAL.value),
    InactiveAccountError: (403, ErrorCode.INACTIVE_ACCOUNT.value),
    TenantInactiveError: (403, ErrorCode.TENANT_INACTIVE.value),
    ForbiddenOriginError: (403, ErrorCode.FORBIDDEN_ORIGIN.value),
    PermissionDeniedError: (403, ErrorCode.MISSING_PERMISSION.value),
    RoleNotAllowedError: (403, ErrorCode.ROLE_NOT_ALLOWED.value),
    TenantAccessDeniedError: (403, ErrorCode.TENANT_ACCESS_DENIED.value),
    MissingTenantContextError: (403, ErrorCode.MISSING_TENANT_CONTEXT.value),
    InvalidTenantIdError: (400, ErrorCode.INVALID_TENANT_ID.value),
    TenantNotFoundError: (404, ErrorCode.TENANT_NOT_FOUND.value),
    ResourceNotFoundError: (404, ErrorCode.NOT_FOUND.value),
    ValidationFailedError: (400, ErrorCode.VALIDATION_ERROR.value),
    ConflictError: (409, ErrorCode.CONFLICT.value),
}


def _details(exc: Exception) -> dict | None:
    """Structured context for known exceptions."""
    if isinstance(exc, PermissionDeniedError):
        return {"permission": exc.permission}
    if isinstance(exc, RoleNotAllowedError):
        return {"role": exc.role, "allowed_roles": exc.allowed_roles}
    if isinstance(exc, TenantAccessDeniedError):
        return {"tenant_id": str(exc.tenant_id), "resource": exc.resource}
    if isinstance(exc, (TenantNotFoundError, TenantInactiveError)):
        return {"tenant_id": str(exc.tenant_id)}
    if isinstance(exc, ForbiddenOriginError):
        return {"origin": exc.origin}
    if isinstance(exc, ResourceNotFoundError):
        details = {"resource": exc.resource}
        if exc.resource_id is not None:
            details["resource_id"] = str(exc.resource_id)
        return details
    if isinstance(exc, (ValidationFailedError, ConflictError)) and exc.field:
        return {"field": exc.field}
    return None


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Maps domain exceptions to appropriate HTTP status codes and formats
    all errors using the APIError schema. Unknown exceptions become a
    generic 500 whose body never carries the exception text.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Convert exception to JSON error response."""
        request_id = self._get_request_id(request)
        status_code, error_code, message, details = self._map_exception(exc)

        if status_code >= 500:
            logger.exception(
                "unhandled_exception",
                request_id=request_id,
                path=request.url.path,
                error_type=type(exc).__name__,
            )

        error = APIError(
            error_code=error_code,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.now(UTC),
        )

        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    def _get_request_id(self, request: Request) -> str:
        """Extract request ID from state or generate placeholder."""
        if hasattr(request.state, "request_id"):
            rid = request.state.request_id
            return str(rid) if isinstance(rid, UUID) else rid
        return "unknown"

    def _map_exception(
        self, exc: Exception
    ) -> tuple[int, str, str, dict | None]:
        """Map exception to (status_code, error_code, message, details)."""
        for exc_type, (status_code, error_code) in EXCEPTION_MAP.items():
            if isinstance(exc, exc_type):
                return status_code, error_code, str(exc), _details(exc)

        # Generic exceptions
        return (
            500,
            ErrorCode.INTERNAL_ERROR.value,
            "Internal server error",
            {"type": type(exc).__name__} if self._is_debug() else None,
        )

    def _is_debug(self) -> bool:
        """Check if debug mode is enabled."""
        return get_settings().DEBUG
