"""Core exceptions for authentication, tenant resolution and domain rules."""

from uuid import UUID

from hotelops.utils.exceptions import HotelOpsError


class AuthenticationError(HotelOpsError):
    """Raised when a request cannot be tied to a verified operator."""

    def __init__(self, reason: str = "Authentication failed"):
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


class MissingCredentialError(AuthenticationError):
    """Raised when no bearer token or session cookie was supplied."""

    def __init__(self, reason: str = "Authentication credentials were not provided"):
        super().__init__(reason)


class InvalidCredentialError(AuthenticationError):
    """Raised when the supplied credential is malformed, forged or expired."""

    def __init__(self, reason: str = "Invalid or expired credentials"):
        super().__init__(reason)


class AuthorizationError(HotelOpsError):
    """Base for failures where the identity is known but access is refused."""

    pass


class InactiveAccountError(AuthorizationError):
    """Raised when the authenticated operator has been deactivated.

    Attributes:
        user_id: The deactivated operator
    """

    def __init__(self, user_id: UUID | str):
        super().__init__(f"Account is inactive: {user_id}")
        self.user_id = user_id


class ForbiddenOriginError(AuthorizationError):
    """Raised when a state-changing request comes from a foreign origin.

    Attributes:
        origin: The Origin header value that was rejected
    """

    def __init__(self, origin: str):
        super().__init__(f"Cross-origin request rejected: {origin}")
        self.origin = origin


class PermissionDeniedError(AuthorizationError):
    """Raised when the operator lacks the permission an endpoint requires.

    Attributes:
        permission: The required permission
    """

    def __init__(self, permission: str):
        super().__init__(f"Missing permission: {permission}")
        self.permission = permission


class RoleNotAllowedError(AuthorizationError):
    """Raised when the operator's role is outside an endpoint's allow-list.

    Attributes:
        role: The operator's role
        allowed_roles: Roles accepted by the endpoint
    """

    def __init__(self, role: str, allowed_roles: list[str]):
        super().__init__(f"Role '{role}' is not allowed for this operation")
        self.role = role
        self.allowed_roles = allowed_roles


class TenantNotFoundError(HotelOpsError):
    """Raised when a hotel referenced by id does not exist.

    Attributes:
        tenant_id: The identifier of the hotel that was not found
    """

    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Hotel not found: {tenant_id}")
        self.tenant_id = tenant_id

    def __str__(self) -> str:
        return f"TenantNotFoundError: {self.tenant_id}"


class TenantInactiveError(AuthorizationError):
    """Raised when the resolved hotel is deactivated or suspended.

    Attributes:
        tenant_id: The identifier of the inactive hotel
    """

    def __init__(self, tenant_id: UUID | str):
        super().__init__(f"Hotel is inactive: {tenant_id}")
        self.tenant_id = tenant_id


class TenantAccessDeniedError(AuthorizationError):
    """Raised when an operator reaches for a hotel outside their scope.

    Attributes:
        tenant_id: The identifier of the hotel
        resource: What was being accessed
    """

    def __init__(self, tenant_id: UUID | str, resource: str):
        super().__init__(f"Access denied to {resource} for hotel {tenant_id}")
        self.tenant_id = tenant_id
        self.resource = resource


class TenantResolutionError(HotelOpsError):
    """Base for failures to derive the hotel a request should act on."""

    pass


class MissingTenantContextError(TenantResolutionError):
    """Raised when no hotel can be derived for a tenant-scoped request."""

    def __init__(self, message: str = "Hotel context is required for this request"):
        super().__init__(message)


class InvalidTenantIdError(TenantResolutionError):
    """Raised when a hotel id is not a well-formed identifier.

    Attributes:
        value: The rejected raw value
    """

    def __init__(self, value: object):
        super().__init__(f"Invalid hotel id: {value!r}")
        self.value = value


class ValidationFailedError(HotelOpsError):
    """Raised when handler input violates a domain rule.

    Attributes:
        field: The offending field, when one can be named
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ResourceNotFoundError(HotelOpsError):
    """Raised when an entity is absent or owned by another hotel.

    Both cases share this error so callers cannot discover other tenants.

    Attributes:
        resource: The entity type
        resource_id: The requested identifier
    """

    def __init__(self, resource: str, resource_id: UUID | str | None = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} not found: {resource_id}"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(HotelOpsError):
    """Raised on a uniqueness violation within a scope.

    Attributes:
        field: The field whose value already exists
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
