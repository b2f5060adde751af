"""FastAPI dependencies forming the auth/tenant chain.

Each endpoint declares the strongest guard it needs; every guard composes
the weaker ones, so the steps always run in this order:

    get_auth_context      credential -> operator (active, permissions, origin)
    get_tenant_auth       operator -> effective hotel, ambient tenant scope
    require_permission    effective permission set contains the requirement
    require_roles         role in an allow-list (platform endpoints)

Any rejection raises before the endpoint body runs; ErrorHandlingMiddleware
turns it into a stable error code.
"""

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.config.settings import Settings, get_settings
from hotelops.core.audit import AuditLogger
from hotelops.core.auth import AuthContext
from hotelops.core.context import parse_tenant_id, tenant_scope
from hotelops.core.exceptions import (
    ForbiddenOriginError,
    InactiveAccountError,
    InvalidCredentialError,
    MissingCredentialError,
    MissingTenantContextError,
    PermissionDeniedError,
    RoleNotAllowedError,
    TenantAccessDeniedError,
    TenantInactiveError,
    TenantNotFoundError,
)
from hotelops.core.logging import bind_contextvars
from hotelops.core.permissions import PLATFORM_ROLES, Permission, Role, effective_permissions
from hotelops.core.security import decode_access_token, extract_token
from hotelops.db.dependencies import get_db, get_session_factory
from hotelops.db.models.hotel import Hotel
from hotelops.db.models.user import User
from hotelops.db.tenant_isolation import SKIP_TENANT_SCOPE

logger = structlog.get_logger(__name__)

STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
TENANT_HEADER = "X-Hotel-Id"
TENANT_QUERY_PARAM = "hotelId"

__all__ = [
    "get_db",
    "get_settings_dependency",
    "get_auth_context",
    "get_tenant_auth",
    "require_permission",
    "require_roles",
    "require_platform_admin",
    "require_main_super_admin",
    "get_audit_logger",
    "get_request_id",
    "enforce_same_origin",
]


def get_settings_dependency(request: Request) -> Settings:
    """Settings attached to the application, or the process default."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_audit_logger(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AuditLogger:
    """AuditLogger writing through its own sessions from the app's factory."""
    return AuditLogger(factory)


def enforce_same_origin(request: Request, settings: Settings) -> None:
    """Reject state-changing requests whose Origin is foreign.

    Requests without an Origin header (non-browser clients) pass.

    Raises:
        ForbiddenOriginError: If the Origin differs from the serving host
            and is not a configured trusted origin
    """
    if request.method.upper() not in STATE_CHANGING_METHODS:
        return
    origin = request.headers.get("Origin")
    if not origin:
        return
    origin = origin.rstrip("/")
    serving = f"{request.url.scheme}://{request.url.netloc}"
    if origin == serving or origin in {o.rstrip("/") for o in settings.TRUSTED_ORIGINS}:
        return
    logger.warning("forbidden_origin", origin=origin, serving=serving, method=request.method)
    raise ForbiddenOriginError(origin)


async def get_auth_context(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> AuthContext:
    """Authenticate the request.

    The token proves identity only; active status, role, hotel and
    explicit grants are read fresh from the user record.

    Raises:
        MissingCredentialError: No bearer token or session cookie
        InvalidCredentialError: Bad signature, expired, or unknown subject
        InactiveAccountError: The operator has been deactivated
        ForbiddenOriginError: Cross-origin state-changing request
    """
    token = extract_token(request)
    if token is None:
        raise MissingCredentialError()

    claims = decode_access_token(token, settings)

    result = await db.execute(
        select(User)
        .where(User.id == claims["sub"])
        .execution_options(**{SKIP_TENANT_SCOPE: True})
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise InvalidCredentialError("Operator no longer exists")
    if not user.is_active:
        raise InactiveAccountError(user.id)

    enforce_same_origin(request, settings)

    auth = AuthContext(
        user_id=user.id,
        role=user.role,
        hotel_id=user.hotel_id,
        permissions=effective_permissions(user.role, user.permissions or []),
        is_verified=user.is_verified,
    )
    bind_contextvars(actor_id=str(auth.user_id), actor_role=auth.role)
    return auth


def _requested_hotel_id(request: Request) -> str | None:
    return request.headers.get(TENANT_HEADER) or request.query_params.get(TENANT_QUERY_PARAM)


async def resolve_tenant(request: Request, auth: AuthContext, db: AsyncSession) -> AuthContext:
    """Determine the hotel the request acts on.

    Operators assigned to a hotel always act on it. Platform operators
    without a hotel name one through the ``X-Hotel-Id`` header or the
    ``hotelId`` query parameter; a sub super admin may only pick hotels
    they created.

    Raises:
        MissingTenantContextError: No hotel could be derived
        InvalidTenantIdError: The override is not a valid hotel id
        TenantNotFoundError: The hotel does not exist
        TenantAccessDeniedError: A sub super admin picked a foreign hotel
        TenantInactiveError: The hotel is inactive
    """
    if auth.hotel_id is not None:
        hotel_id = auth.hotel_id
    else:
        raw = _requested_hotel_id(request) if auth.is_platform_admin else None
        if not raw:
            raise MissingTenantContextError()
        hotel_id = parse_tenant_id(raw)

    result = await db.execute(select(Hotel).where(Hotel.id == hotel_id))
    hotel = result.scalar_one_or_none()
    if hotel is None:
        raise TenantNotFoundError(hotel_id)
    if (
        auth.hotel_id is None
        and not auth.is_main_super_admin
        and hotel.created_by != auth.user_id
    ):
        raise TenantAccessDeniedError(hotel_id, "hotel")
    if not hotel.is_active:
        raise TenantInactiveError(hotel_id)

    return auth.with_hotel(hotel_id)


async def get_tenant_auth(
    request: Request,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AsyncGenerator[AuthContext, None]:
    """Resolve the hotel and hold it as the ambient tenant for the request.

    Every ORM statement the endpoint runs afterwards is scoped to this
    hotel by the tenant isolation hook.
    """
    tenant_auth = await resolve_tenant(request, auth, db)
    request.state.hotel_id = tenant_auth.hotel_id
    with tenant_scope(tenant_auth.hotel_id):
        yield tenant_auth


def require_permission(
    permission: Permission | str,
) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """Dependency factory: tenant-scoped operator holding ``permission``.

    Example:
        @router.post("/rooms")
        async def create_room(
            auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_CREATE))],
        ): ...
    """
    required = permission.value if isinstance(permission, Permission) else permission

    async def dependency(
        auth: Annotated[AuthContext, Depends(get_tenant_auth)],
    ) -> AuthContext:
        if required not in auth.permissions:
            logger.info("permission_denied", permission=required, role=auth.role)
            raise PermissionDeniedError(required)
        return auth

    return dependency


def require_roles(*roles: Role | str) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """Dependency factory: authenticated operator whose role is in ``roles``."""
    allowed = frozenset(Role(role).value for role in roles)

    async def dependency(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
    ) -> AuthContext:
        if auth.role not in allowed:
            raise RoleNotAllowedError(auth.role, sorted(allowed))
        return auth

    return dependency


require_platform_admin = require_roles(*PLATFORM_ROLES)
require_main_super_admin = require_roles(Role.SUPER_ADMIN)

# Annotated aliases for endpoint signatures
CurrentOperator = Annotated[AuthContext, Depends(get_auth_context)]
TenantOperator = Annotated[AuthContext, Depends(get_tenant_auth)]
PlatformAdmin = Annotated[AuthContext, Depends(require_platform_admin)]
MainSuperAdmin = Annotated[AuthContext, Depends(require_main_super_admin)]
AuditWriter = Annotated[AuditLogger, Depends(get_audit_logger)]


def tenant_hotel_id(auth: AuthContext) -> UUID:
    """Hotel id of a tenant-resolved auth context."""
    if auth.hotel_id is None:
        raise MissingTenantContextError()
    return auth.hotel_id
