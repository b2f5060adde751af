"""Room endpoints for the current hotel.

Handlers never filter by hotel themselves; the tenant scope entered by
the auth chain restricts every statement to the resolved hotel.
"""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from hotelops.api.dependencies import require_permission, tenant_hotel_id
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.tenant import (
    RoomCreateRequest,
    RoomListResponse,
    RoomResponse,
    RoomUpdateRequest,
)
from hotelops.core.auth import AuthContext
from hotelops.core.exceptions import ConflictError, ResourceNotFoundError
from hotelops.core.permissions import Permission
from hotelops.db.dependencies import DatabaseSession
from hotelops.db.models.room import Room
from hotelops.utils.params import parse_int, parse_pagination

logger = structlog.get_logger()

router = APIRouter(prefix="/rooms", tags=["rooms"])

INACTIVE_FILTER = "inactive"


async def _get_room(db: DatabaseSession, room_id: UUID) -> Room:
    room = (await db.execute(select(Room).where(Room.id == room_id))).scalar_one_or_none()
    if room is None:
        raise ResourceNotFoundError("Room", room_id)
    return room


async def _room_number_taken(
    db: DatabaseSession, room_number: str, exclude_id: UUID | None = None
) -> bool:
    query = select(Room.id).where(Room.room_number == room_number)
    if exclude_id is not None:
        query = query.where(Room.id != exclude_id)
    return (await db.execute(query.limit(1))).first() is not None


@router.get("", response_model=RoomListResponse, summary="List rooms")
async def list_rooms(
    auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_READ))],
    db: DatabaseSession,
    room_status: Annotated[str | None, Query(alias="status")] = None,
    room_type: Annotated[str | None, Query(alias="type")] = None,
    floor: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> RoomListResponse:
    """Rooms ordered by floor then number; ``status=inactive`` lists removed rooms."""
    page_number, page_size = parse_pagination(page, limit, max_limit=200)

    criteria = []
    if room_status == INACTIVE_FILTER:
        criteria.append(Room.is_active.is_(False))
    else:
        criteria.append(Room.is_active.is_(True))
        if room_status:
            criteria.append(Room.status == room_status)
    if room_type:
        criteria.append(Room.type == room_type)
    if floor:
        criteria.append(Room.floor == parse_int(floor, 0))

    total = (
        await db.execute(select(func.count()).select_from(Room).where(*criteria))
    ).scalar_one()
    rooms = (
        await db.execute(
            select(Room)
            .where(*criteria)
            .order_by(Room.floor.asc(), Room.room_number.asc())
            .limit(page_size)
            .offset((page_number - 1) * page_size)
        )
    ).scalars()
    return RoomListResponse(
        data=[RoomResponse.model_validate(room) for room in rooms],
        pagination=Pagination.build(page_number, page_size, total),
    )


@router.post(
    "",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create room",
)
async def create_room(
    body: RoomCreateRequest,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_CREATE))],
    db: DatabaseSession,
) -> RoomResponse:
    room_number = body.room_number.strip()
    if await _room_number_taken(db, room_number):
        raise ConflictError("Room number already exists", field="room_number")

    room = Room(
        hotel_id=tenant_hotel_id(auth),
        room_number=room_number,
        floor=body.floor,
        type=body.type.value,
        price_per_night=body.price_per_night,
        capacity_adults=body.capacity_adults,
        capacity_children=body.capacity_children,
        amenities=body.amenities,
        description=body.description,
    )
    db.add(room)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Room number already exists", field="room_number") from exc

    logger.info("room_created", room_id=str(room.id), room_number=room.room_number)
    return RoomResponse.model_validate(room)


@router.get("/{room_id}", response_model=RoomResponse, summary="Get room")
async def get_room(
    room_id: UUID,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_READ))],
    db: DatabaseSession,
) -> RoomResponse:
    return RoomResponse.model_validate(await _get_room(db, room_id))


@router.patch("/{room_id}", response_model=RoomResponse, summary="Update room")
async def update_room(
    room_id: UUID,
    body: RoomUpdateRequest,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_UPDATE))],
    db: DatabaseSession,
) -> RoomResponse:
    room = await _get_room(db, room_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    new_number = changes.get("room_number")
    if new_number is not None:
        changes["room_number"] = new_number = new_number.strip()
        if new_number != room.room_number and await _room_number_taken(db, new_number, room.id):
            raise ConflictError("Room number already exists", field="room_number")

    for field, value in changes.items():
        setattr(room, field, value)
    await db.commit()
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove room")
async def delete_room(
    room_id: UUID,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.ROOM_DELETE))],
    db: DatabaseSession,
) -> None:
    """Soft delete: the room is deactivated and kept for booking history."""
    room = await _get_room(db, room_id)
    room.is_active = False
    await db.commit()
    logger.info("room_deactivated", room_id=str(room.id))
