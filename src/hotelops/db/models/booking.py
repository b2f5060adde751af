"""Bookings and the payments recorded against them."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import (
    Base,
    PortableUUID,
    TenantScopedMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    utcnow,
)

if TYPE_CHECKING:
    from .guest import Guest
    from .room import Room


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"


class Booking(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    """A reservation of one room by one guest."""

    __tablename__ = "bookings"

    booking_number: Mapped[str] = mapped_column(String(30), nullable=False)
    room_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False
    )
    guest_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("guests.id", ondelete="RESTRICT"), nullable=False
    )
    check_in_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    check_out_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    actual_check_in: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    actual_check_out: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value
    )
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="direct")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value
    )
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)

    room: Mapped["Room"] = relationship()
    guest: Mapped["Guest"] = relationship()
    payments: Mapped[list["BookingPayment"]] = relationship(
        back_populates="booking",
        order_by="BookingPayment.paid_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("hotel_id", "booking_number", name="uq_bookings_hotel_number"),
        Index("idx_bookings_hotel_status", "hotel_id", "status"),
        Index("idx_bookings_hotel_dates", "hotel_id", "check_in_date", "check_out_date"),
    )

    @property
    def balance_due(self) -> Decimal:
        return max(Decimal(self.total_amount) - Decimal(self.paid_amount or 0), Decimal("0"))


class BookingPayment(UUIDPrimaryKeyMixin, TenantScopedMixin, Base):
    """One payment taken against a booking."""

    __tablename__ = "booking_payments"

    booking_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    recorded_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    paid_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    booking: Mapped[Booking] = relationship(back_populates="payments")

    __table_args__ = (
        Index("idx_booking_payments_hotel_paid_at", "hotel_id", "paid_at"),
        Index("idx_booking_payments_booking", "booking_id"),
    )
