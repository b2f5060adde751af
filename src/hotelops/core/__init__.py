"""Core services and utilities for HotelOps."""

from .audit import AuditEntry, AuditFilter, AuditLogger
from .auth import AuthContext, OwnershipScope
from .context import (
    get_tenant_from_context,
    require_tenant_from_context,
    run_with_tenant,
    tenant_scope,
)
from .exceptions import (
    ConflictError,
    MissingTenantContextError,
    ResourceNotFoundError,
    TenantAccessDeniedError,
    TenantInactiveError,
    TenantNotFoundError,
    ValidationFailedError,
)
from .permissions import Permission, Role

__all__ = [
    # Audit
    "AuditEntry",
    "AuditFilter",
    "AuditLogger",
    # Identity
    "AuthContext",
    "OwnershipScope",
    "Permission",
    "Role",
    # Tenant context
    "get_tenant_from_context",
    "require_tenant_from_context",
    "run_with_tenant",
    "tenant_scope",
    # Exceptions
    "ConflictError",
    "MissingTenantContextError",
    "ResourceNotFoundError",
    "TenantAccessDeniedError",
    "TenantInactiveError",
    "TenantNotFoundError",
    "ValidationFailedError",
]
