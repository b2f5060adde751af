"""Booking endpoints for the current hotel."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy import func, select

from hotelops.api.dependencies import TenantOperator, get_settings_dependency, require_permission
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.tenant import (
    BookingCreateRequest,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingUpdateRequest,
)
from hotelops.core.auth import AuthContext
from hotelops.core.frontdesk import UNSET, BookingService, PaymentUpdate
from hotelops.core.permissions import Permission
from hotelops.db.dependencies import DatabaseSession
from hotelops.db.models.booking import Booking
from hotelops.utils.params import parse_pagination

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=BookingListResponse, summary="List bookings")
async def list_bookings(
    auth: Annotated[AuthContext, Depends(require_permission(Permission.BOOKING_READ))],
    db: DatabaseSession,
    booking_status: Annotated[str | None, Query(alias="status")] = None,
    payment_status: Annotated[str | None, Query(alias="paymentStatus")] = None,
    page: str | None = None,
    limit: str | None = None,
) -> BookingListResponse:
    """Bookings, most recent check-in first."""
    page_number, page_size = parse_pagination(page, limit)

    criteria = []
    if booking_status:
        criteria.append(Booking.status == booking_status)
    if payment_status:
        criteria.append(Booking.payment_status == payment_status)

    total = (
        await db.execute(select(func.count()).select_from(Booking).where(*criteria))
    ).scalar_one()
    bookings = (
        await db.execute(
            select(Booking)
            .where(*criteria)
            .order_by(Booking.check_in_date.desc(), Booking.id.desc())
            .limit(page_size)
            .offset((page_number - 1) * page_size)
        )
    ).scalars()
    return BookingListResponse(
        data=[BookingResponse.model_validate(booking) for booking in bookings],
        pagination=Pagination.build(page_number, page_size, total),
    )


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
    description="Total is nights times the nightly rate plus the hotel's tax rate.",
)
async def create_booking(
    body: BookingCreateRequest,
    request: Request,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.BOOKING_CREATE))],
    db: DatabaseSession,
) -> BookingResponse:
    service = BookingService(db, settings=get_settings_dependency(request))
    booking = await service.create_booking(
        auth,
        room_id=body.room_id,
        guest_id=body.guest_id,
        check_in_date=body.check_in_date,
        check_out_date=body.check_out_date,
        source=body.source,
    )
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingDetailResponse, summary="Get booking")
async def get_booking(
    booking_id: UUID,
    auth: Annotated[AuthContext, Depends(require_permission(Permission.BOOKING_READ))],
    db: DatabaseSession,
) -> BookingDetailResponse:
    """A booking with its room, guest and payment history."""
    booking = await BookingService(db).get_booking(booking_id)
    return BookingDetailResponse.model_validate(booking)


@router.put(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    summary="Update booking",
    description=(
        "Notes, status transitions (confirm, check in, check out, cancel, no-show) "
        "and payments. Each kind of change needs its own permission."
    ),
    responses={204: {"description": "Updated; the operator may not read bookings"}},
)
@router.patch("/{booking_id}", response_model=BookingDetailResponse, include_in_schema=False)
async def update_booking(
    booking_id: UUID,
    body: BookingUpdateRequest,
    auth: TenantOperator,
    db: DatabaseSession,
) -> BookingDetailResponse | Response:
    supplied = body.model_fields_set
    payment = None
    if body.payment is not None:
        payment = PaymentUpdate(
            amount=body.payment.amount,
            method=body.payment.method,
            reference=body.payment.reference,
            status=body.payment.status,
            paid_amount=body.payment.paid_amount,
        )

    booking = await BookingService(db).update_booking(
        auth,
        booking_id,
        notes=body.notes if "notes" in supplied else UNSET,
        special_requests=body.special_requests if "special_requests" in supplied else UNSET,
        status=body.status,
        cancellation_reason=body.cancellation_reason,
        payment=payment,
    )
    if not auth.has_permission(Permission.BOOKING_READ):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return BookingDetailResponse.model_validate(booking)
