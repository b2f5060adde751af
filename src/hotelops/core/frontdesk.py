"""Hotel-scoped front desk operations: bookings and dashboard counters.

Queries here carry no hotel condition of their own. They run inside the
request's tenant scope, and the isolation hook restricts them to the
current hotel.
"""

import math
import secrets
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotelops.config.settings import Settings
from hotelops.core.auth import AuthContext
from hotelops.core.context import require_tenant_from_context
from hotelops.core.exceptions import (
    ConflictError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from hotelops.core.hotels import HotelService
from hotelops.core.permissions import Permission, has_any_permission
from hotelops.db.models import (
    Booking,
    BookingPayment,
    BookingStatus,
    Guest,
    PaymentMethod,
    PaymentStatus,
    Room,
    RoomStatus,
)
from hotelops.db.models.hotel import NotificationType
from hotelops.subscription.policy import utc_now

logger = structlog.get_logger(__name__)

DEFAULT_CHECK_IN_TIME = "14:00"
DEFAULT_CHECK_OUT_TIME = "12:00"
DEFAULT_TAX_RATE = 15
BOOKING_NUMBER_ATTEMPTS = 5

# Bookings that still count towards occupancy and revenue
INACTIVE_BOOKING_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.NO_SHOW.value)

CENT = Decimal("0.01")

# Sentinel for "field not supplied" in partial updates
UNSET: Any = object()

STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    BookingStatus.PENDING.value: (BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value),
    BookingStatus.CONFIRMED.value: (
        BookingStatus.CHECKED_IN.value,
        BookingStatus.CANCELLED.value,
        BookingStatus.NO_SHOW.value,
    ),
    BookingStatus.CHECKED_IN.value: (BookingStatus.CHECKED_OUT.value,),
}

# Enough for a status change without booking:update
STATUS_PERMISSIONS: dict[str, Permission] = {
    BookingStatus.CONFIRMED.value: Permission.BOOKING_CONFIRM,
    BookingStatus.CANCELLED.value: Permission.BOOKING_CANCEL,
    BookingStatus.CHECKED_IN.value: Permission.BOOKING_CHECKIN,
    BookingStatus.CHECKED_OUT.value: Permission.BOOKING_CHECKOUT,
    BookingStatus.NO_SHOW.value: Permission.BOOKING_CANCEL,
}

BOOKING_UPDATE_PERMISSIONS = frozenset(
    {
        Permission.BOOKING_UPDATE,
        Permission.PAYMENT_CREATE,
        Permission.PAYMENT_REFUND,
        *STATUS_PERMISSIONS.values(),
    }
)

PAYMENT_METHODS = frozenset(method.value for method in PaymentMethod)
PAYMENT_STATUSES = frozenset(status.value for status in PaymentStatus)


def parse_clock(value: str | None, default: str) -> time:
    """``HH:MM`` from hotel settings; malformed values fall back to ``default``."""
    for candidate in (value, default):
        try:
            hours, minutes = (int(part) for part in str(candidate).split(":", 1))
            return time(hours, minutes)
        except (TypeError, ValueError):
            continue
    return time(0, 0)


def booking_number(now: datetime | None = None) -> str:
    """``BK`` + two-digit year + month + four random digits."""
    now = now or utc_now()
    return f"BK{now:%y%m}{secrets.randbelow(10_000):04d}"


def stay_pricing(
    nightly_rate: Decimal, check_in: datetime, check_out: datetime, tax_rate: float
) -> tuple[int, Decimal]:
    """Nights (partial days round up) and the tax-inclusive total."""
    nights = math.ceil((check_out - check_in) / timedelta(days=1))
    if nights < 1:
        raise ValidationFailedError("Check-out must be after check-in", field="check_out_date")
    subtotal = Decimal(nightly_rate) * nights
    total = subtotal * (1 + Decimal(str(tax_rate)) / 100)
    return nights, total.quantize(CENT, rounding=ROUND_HALF_UP)


def derived_payment_status(paid: Decimal, total: Decimal) -> str:
    """Payment status implied by the amount paid against the booking total."""
    if total > 0 and paid >= total:
        return PaymentStatus.PAID.value
    if paid > 0:
        return PaymentStatus.PARTIAL.value
    return PaymentStatus.PENDING.value


@dataclass
class PaymentUpdate:
    """Payment changes requested for a booking.

    ``amount`` and ``method`` record a new payment, ``status`` overrides the
    payment status and ``paid_amount`` overrides the total paid so far.
    """

    amount: Decimal | None = None
    method: str | None = None
    reference: str | None = None
    status: str | None = None
    paid_amount: Decimal | None = None

    @property
    def requested(self) -> bool:
        return self.amount is not None or self.paid_amount is not None or bool(self.status)

    def validate(self) -> None:
        """Raises ValidationFailedError on an out-of-range amount, method or status."""
        if self.amount is not None:
            if self.amount <= 0:
                raise ValidationFailedError("Invalid payment amount", field="payment.amount")
            if self.method not in PAYMENT_METHODS:
                raise ValidationFailedError("Invalid payment method", field="payment.method")
        if self.status and self.status not in PAYMENT_STATUSES:
            raise ValidationFailedError("Invalid payment status", field="payment.status")
        if self.paid_amount is not None and self.paid_amount < 0:
            raise ValidationFailedError("Invalid paid amount", field="payment.paid_amount")


class BookingService:
    """Creates, reads and updates bookings of the hotel in the current tenant scope."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.hotels = HotelService(db, settings=settings)

    async def create_booking(
        self,
        auth: AuthContext,
        *,
        room_id: UUID,
        guest_id: UUID,
        check_in_date: date,
        check_out_date: date,
        source: str = "direct",
    ) -> Booking:
        """Book an active room of the current hotel for one of its guests.

        Stay dates are combined with the hotel's configured check-in and
        check-out times. When the hotel has new-booking notifications
        enabled, an entry is appended to its notifications log in the same
        transaction.

        Raises:
            ResourceNotFoundError: If the room or guest is not in this hotel
            ValidationFailedError: If the stay is shorter than one night
            ConflictError: If no unique booking number could be allocated
        """
        hotel_id = require_tenant_from_context()
        hotel = await self.hotels.get_hotel_or_raise(hotel_id)
        settings = hotel.settings or {}

        check_in = datetime.combine(
            check_in_date,
            parse_clock(settings.get("check_in_time"), DEFAULT_CHECK_IN_TIME),
            tzinfo=UTC,
        )
        check_out = datetime.combine(
            check_out_date,
            parse_clock(settings.get("check_out_time"), DEFAULT_CHECK_OUT_TIME),
            tzinfo=UTC,
        )

        room = (
            await self.db.execute(select(Room).where(Room.id == room_id, Room.is_active.is_(True)))
        ).scalar_one_or_none()
        if room is None:
            raise ResourceNotFoundError("Room", room_id)
        guest = (await self.db.execute(select(Guest).where(Guest.id == guest_id))).scalar_one_or_none()
        if guest is None:
            raise ResourceNotFoundError("Guest", guest_id)

        tax_rate = settings.get("tax_rate", DEFAULT_TAX_RATE)
        if not isinstance(tax_rate, (int, float)):
            tax_rate = DEFAULT_TAX_RATE
        nights, total = stay_pricing(room.price_per_night, check_in, check_out, tax_rate)
        message = f"New booking for room {room.room_number} by {guest.full_name}."
        notify = bool((settings.get("notifications") or {}).get("new_booking"))
        room_id, guest_id = room.id, guest.id

        for _ in range(BOOKING_NUMBER_ATTEMPTS):
            booking = Booking(
                hotel_id=hotel_id,
                booking_number=booking_number(),
                room_id=room_id,
                guest_id=guest_id,
                check_in_date=check_in,
                check_out_date=check_out,
                status=BookingStatus.PENDING.value,
                source=source,
                total_amount=total,
                paid_amount=Decimal("0"),
                payment_status="pending",
                created_by=auth.user_id,
            )
            self.db.add(booking)
            if notify:
                self.hotels.append_notification(hotel, NotificationType.BOOKING_NEW, message)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                hotel = await self.hotels.get_hotel_or_raise(hotel_id)
                continue
            logger.info(
                "booking_created",
                booking_id=str(booking.id),
                booking_number=booking.booking_number,
                nights=nights,
            )
            return booking

        raise ConflictError("Booking number already exists, try again", field="booking_number")

    async def get_booking(self, booking_id: UUID) -> Booking:
        """A booking of the current hotel with its room, guest and payments.

        Raises:
            ResourceNotFoundError: If the booking is not in this hotel
        """
        booking = (
            await self.db.execute(
                select(Booking)
                .where(Booking.id == booking_id)
                .options(
                    selectinload(Booking.room),
                    selectinload(Booking.guest),
                    selectinload(Booking.payments),
                )
            )
        ).scalar_one_or_none()
        if booking is None:
            raise ResourceNotFoundError("Booking", booking_id)
        return booking

    async def update_booking(
        self,
        auth: AuthContext,
        booking_id: UUID,
        *,
        notes: Any = UNSET,
        special_requests: Any = UNSET,
        status: str | None = None,
        cancellation_reason: str | None = None,
        payment: PaymentUpdate | None = None,
    ) -> Booking:
        """Apply a front desk change to a booking.

        Notes need ``booking:update``. A status change must follow
        ``STATUS_TRANSITIONS`` and needs ``booking:update`` or the
        transition's own permission. Payment changes need
        ``payment:create``; marking a booking refunded also needs
        ``payment:refund``.

        Raises:
            PermissionDeniedError: If the operator may not make the change
            ValidationFailedError: If nothing applicable was supplied or the
                status transition is not allowed
            ResourceNotFoundError: If the booking is not in this hotel
        """
        if not has_any_permission(auth.role, auth.permissions, BOOKING_UPDATE_PERMISSIONS):
            raise PermissionDeniedError(Permission.BOOKING_UPDATE.value)

        wants_notes = notes is not UNSET or special_requests is not UNSET
        wants_payment = payment is not None and payment.requested
        if not (wants_notes or status or wants_payment):
            raise ValidationFailedError("No valid update fields provided")

        can_update = auth.has_permission(Permission.BOOKING_UPDATE)
        if wants_notes and not can_update:
            raise PermissionDeniedError(Permission.BOOKING_UPDATE.value)
        if wants_payment and not auth.has_permission(Permission.PAYMENT_CREATE):
            raise PermissionDeniedError(Permission.PAYMENT_CREATE.value)
        if (
            wants_payment
            and payment.status == PaymentStatus.REFUNDED.value
            and not auth.has_permission(Permission.PAYMENT_REFUND)
        ):
            raise PermissionDeniedError(Permission.PAYMENT_REFUND.value)

        if wants_payment:
            payment.validate()

        booking = await self.get_booking(booking_id)
        now = utc_now()
        previous_status = booking.status

        if notes is not UNSET:
            booking.notes = notes or None
        if special_requests is not UNSET:
            booking.special_requests = special_requests or None

        if status:
            if status not in STATUS_TRANSITIONS.get(booking.status, ()):
                raise ValidationFailedError("Invalid booking status transition", field="status")
            required = STATUS_PERMISSIONS.get(status)
            if not can_update and required is not None and not auth.has_permission(required):
                raise PermissionDeniedError(required.value)
            booking.status = status
            if status == BookingStatus.CHECKED_IN.value and booking.actual_check_in is None:
                booking.actual_check_in = now
            elif status == BookingStatus.CHECKED_OUT.value and booking.actual_check_out is None:
                booking.actual_check_out = now
            elif status == BookingStatus.CANCELLED.value:
                booking.cancelled_at = now
                if cancellation_reason and cancellation_reason.strip():
                    booking.cancellation_reason = cancellation_reason.strip()

        if wants_payment:
            self._apply_payment(auth, booking, payment, now)

        await self.db.commit()
        logger.info(
            "booking_updated",
            booking_id=str(booking.id),
            status=booking.status,
            previous_status=previous_status,
            payment_status=booking.payment_status,
        )
        return booking

    def _apply_payment(
        self, auth: AuthContext, booking: Booking, payment: PaymentUpdate, now: datetime
    ) -> None:
        if payment.amount is not None:
            booking.payments.append(
                BookingPayment(
                    hotel_id=booking.hotel_id,
                    amount=payment.amount,
                    method=payment.method,
                    reference=(payment.reference or "").strip() or None,
                    recorded_by=auth.user_id,
                    paid_at=now,
                )
            )
            booking.paid_amount = Decimal(booking.paid_amount or 0) + payment.amount
            booking.payment_method = payment.method
            booking.payment_status = derived_payment_status(
                booking.paid_amount, booking.total_amount
            )

        if payment.status:
            booking.payment_status = payment.status

        if payment.paid_amount is not None:
            booking.paid_amount = payment.paid_amount
            if not payment.status:
                booking.payment_status = derived_payment_status(
                    booking.paid_amount, booking.total_amount
                )


@dataclass
class DashboardStats:
    total_rooms: int
    available_rooms: int
    occupied_rooms: int
    today_check_ins: int
    today_check_outs: int
    pending_bookings: int
    total_guests: int
    total_bookings: int
    monthly_revenue: Decimal
    last_month_revenue: Decimal

    @property
    def occupancy_rate(self) -> float:
        if not self.total_rooms:
            return 0.0
        return round(self.occupied_rooms / self.total_rooms * 100, 1)


def month_start(value: datetime, offset: int = 0) -> datetime:
    month_index = value.year * 12 + value.month - 1 + offset
    return value.replace(
        year=month_index // 12,
        month=month_index % 12 + 1,
        day=1,
        hour=0,
        minute=0,
        second=0,
        microsecond=0,
    )


async def dashboard_stats(db: AsyncSession, now: datetime | None = None) -> DashboardStats:
    """Counters for the hotel of the current tenant scope.

    Days and months are UTC calendar periods. Revenue is the total of
    active bookings checking out within the month.
    """
    require_tenant_from_context()
    now = now or utc_now()
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)
    this_month = month_start(now)
    next_month = month_start(now, 1)
    last_month = month_start(now, -1)

    active_booking = Booking.status.not_in(INACTIVE_BOOKING_STATUSES)

    async def count(model, *criteria) -> int:
        return (
            await db.execute(select(func.count()).select_from(model).where(*criteria))
        ).scalar_one()

    async def revenue(start: datetime, end: datetime) -> Decimal:
        total = (
            await db.execute(
                select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
                    active_booking,
                    Booking.check_out_date >= start,
                    Booking.check_out_date < end,
                )
            )
        ).scalar_one()
        return Decimal(str(total)).quantize(CENT)

    active_room = Room.is_active.is_(True)
    return DashboardStats(
        total_rooms=await count(Room, active_room),
        available_rooms=await count(Room, active_room, Room.status == RoomStatus.AVAILABLE.value),
        occupied_rooms=await count(Room, active_room, Room.status == RoomStatus.OCCUPIED.value),
        today_check_ins=await count(
            Booking, active_booking, Booking.check_in_date >= day_start, Booking.check_in_date < day_end
        ),
        today_check_outs=await count(
            Booking,
            active_booking,
            Booking.check_out_date >= day_start,
            Booking.check_out_date < day_end,
        ),
        pending_bookings=await count(Booking, Booking.status == BookingStatus.PENDING.value),
        total_guests=await count(Guest),
        total_bookings=await count(Booking, active_booking),
        monthly_revenue=await revenue(this_month, next_month),
        last_month_revenue=await revenue(last_month, this_month),
    )
