"""Platform operator account endpoints.

- GET   /platform/users              - List operators visible to the caller
- POST  /platform/users              - Create an operator
- PATCH /platform/users/{id}         - Partial update
- POST  /platform/users/{id}/verify  - Verify a sub super admin (main super admin)
"""

from uuid import UUID

from fastapi import APIRouter, Request, status

from hotelops.api.dependencies import AuditWriter, MainSuperAdmin, PlatformAdmin
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.monitoring import VerifyResponse
from hotelops.api.schemas.users import (
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from hotelops.core.users import UNSET, UserService
from hotelops.db.dependencies import DatabaseSession
from hotelops.utils.params import parse_pagination

router = APIRouter(prefix="/platform/users", tags=["platform-users"])

UPDATABLE_FIELDS = ("name", "email", "phone", "is_active", "role")


@router.get(
    "",
    response_model=UserListResponse,
    summary="List operators",
    description="Sub super admins only see operators of hotels they created.",
)
async def list_users(
    auth: PlatformAdmin,
    db: DatabaseSession,
    search: str | None = None,
    role: str | None = None,
    hotel_id: UUID | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> UserListResponse:
    page_number, page_size = parse_pagination(page, limit)
    users, total = await UserService(db).list_users(
        auth,
        search=search,
        role=role,
        hotel_id=hotel_id,
        limit=page_size,
        offset=(page_number - 1) * page_size,
    )
    return UserListResponse(
        data=[UserResponse.model_validate(user) for user in users],
        pagination=Pagination.build(page_number, page_size, total),
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create operator",
)
async def create_user(
    body: UserCreateRequest,
    request: Request,
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> UserResponse:
    user = await UserService(db, audit=audit).create_user(
        auth,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        hotel_id=body.hotel_id,
        phone=body.phone,
        request=request,
    )
    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update operator",
    description="Only fields present in the body change; operators cannot deactivate themselves.",
)
async def update_user(
    user_id: UUID,
    body: UserUpdateRequest,
    request: Request,
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> UserResponse:
    changes = {
        name: getattr(body, name) if name in body.model_fields_set else UNSET
        for name in UPDATABLE_FIELDS
    }
    user = await UserService(db, audit=audit).update_user(
        auth, user_id, request=request, **changes
    )
    return UserResponse.model_validate(user)


@router.post(
    "/{user_id}/verify",
    response_model=VerifyResponse,
    summary="Verify sub super admin",
)
async def verify_user(
    user_id: UUID,
    request: Request,
    auth: MainSuperAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> VerifyResponse:
    user = await UserService(db, audit=audit).verify_operator(auth, user_id, request=request)
    return VerifyResponse(id=user.id, is_verified=user.is_verified, verified_at=user.verified_at)
