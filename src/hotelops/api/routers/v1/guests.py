"""Guest endpoints for the current hotel."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select

from hotelops.api.dependencies import require_permission, tenant_hotel_id
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.tenant import (
    GuestCreateRequest,
    GuestListResponse,
    GuestResponse,
    GuestUpdateRequest,
)
from hotelops.core.auth import AuthContext
from hotelops.core.exceptions import ResourceNotFoundError, ValidationFailedError
from hotelops.core.permissions import Permission
from hotelops.db.dependencies import DatabaseSession
from hotelops.db.models.guest import Guest
from hotelops.utils.params import parse_pagination
from hotelops.utils.text import escape_like, normalize_search_term

logger = structlog.get_logger()

router = APIRouter(prefix="/guests", tags=["guests"])

# Columns that are NOT NULL on the guest record
REQUIRED_GUEST_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "phone",
        "nationality",
        "id_type",
        "id_number",
        "guest_type",
        "is_blacklisted",
    }
)


@router.get("", response_model=GuestListResponse, summary="List guests")
async def list_guests(
    auth: Annotated[AuthContext, Depends(require_permission(Permission.GUEST_READ))],
    db: DatabaseSession,
    search: str | None = None,
    guest_type: Annotated[str | None, Query(alias="guestType")] = None,
    page: str | None = None,
    limit: str | None = None,
) -> GuestListResponse:
    """Guests ordered by last then first name; search covers names, phone, email and id number."""
    page_number, page_size = parse_pagination(page, limit)

    criteria = []
    term = normalize_search_term(search)
    if term:
        pattern = f"%{escape_like(term)}%"
        criteria.append(
            or_(
                Guest.first_name.ilike(pattern, escape="\\"),
                Guest.last_name.ilike(pattern, escape="\\"),
                Guest.phone.ilike(pattern, escape="\\"),
                Guest.email.ilike(pattern, escape="\\"),
                Guest.id_number.ilike(pattern, escape="\\"),
            )
        )
    if guest_type:
        criteria.append(Guest.guest_type == guest_type)

    total = (
        await db.execute(select(func.count()).select_from(Guest).where(*criteria))
    ).scalar_one()
    guests = (
        await db.execute(
            select(Guest)
            .where(*criteria)
            .order_by(Guest.last_name.asc(), Guest.first_name.asc())
            .limit(page_size)
            .offset((page_number - 1) * page_size)
        )
    ).scalars()
    return GuestListResponse(
        data=[GuestResponse.model_validate(guest) for guest in guests],
        pagination=Pagination.build(page_number, page_size, total),
    )


@router.post(
    "",
    response_model=GuestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register guest",
)
async def create_guest(
    body: GuestCreateRequest,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.GUEST_CREATE))],
    db: DatabaseSession,
) -> GuestResponse:
    guest = Guest(hotel_id=tenant_hotel_id(auth), **body.model_dump())
    db.add(guest)
    await db.commit()
    logger.info("guest_created", guest_id=str(guest.id))
    return GuestResponse.model_validate(guest)


@router.get("/{guest_id}", response_model=GuestResponse, summary="Get guest")
async def get_guest(
    guest_id: UUID,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.GUEST_READ))],
    db: DatabaseSession,
) -> GuestResponse:
    guest = (await db.execute(select(Guest).where(Guest.id == guest_id))).scalar_one_or_none()
    if guest is None:
        raise ResourceNotFoundError("Guest", guest_id)
    return GuestResponse.model_validate(guest)


@router.put("/{guest_id}", response_model=GuestResponse, summary="Update guest")
@router.patch("/{guest_id}", response_model=GuestResponse, include_in_schema=False)
async def update_guest(
    guest_id: UUID,
    body: GuestUpdateRequest,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.GUEST_UPDATE))],
    db: DatabaseSession,
) -> GuestResponse:
    """Partial update; ``email`` and ``notes`` may be cleared with null."""
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailedError("No valid update fields provided")
    for field in REQUIRED_GUEST_FIELDS & changes.keys():
        if changes[field] is None:
            raise ValidationFailedError(f"{field} cannot be empty", field=field)

    guest = (await db.execute(select(Guest).where(Guest.id == guest_id))).scalar_one_or_none()
    if guest is None:
        raise ResourceNotFoundError("Guest", guest_id)
    for field, value in changes.items():
        setattr(guest, field, value)
    await db.commit()
    logger.info("guest_updated", guest_id=str(guest.id), fields=sorted(changes))
    return GuestResponse.model_validate(guest)
