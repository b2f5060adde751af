"""Schemas for hotel-scoped resources: rooms, guests, bookings, finance, settings."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hotelops.api.schemas.common import Pagination
from hotelops.db.models import BookingStatus, PaymentMethod, PaymentStatus, RoomStatus, RoomType

# =============================================================================
# Rooms
# =============================================================================


class RoomCreateRequest(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=20)
    floor: int = Field(..., ge=0, le=200)
    type: RoomType
    price_per_night: Decimal = Field(..., gt=0)
    capacity_adults: int = Field(default=2, ge=1, le=20)
    capacity_children: int = Field(default=0, ge=0, le=20)
    amenities: list[str] = Field(default_factory=list)
    description: str | None = Field(default=None, max_length=500)


class RoomUpdateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    room_number: str | None = Field(default=None, min_length=1, max_length=20)
    floor: int | None = Field(default=None, ge=0, le=200)
    type: RoomType | None = None
    status: RoomStatus | None = None
    price_per_night: Decimal | None = Field(default=None, gt=0)
    capacity_adults: int | None = Field(default=None, ge=1, le=20)
    capacity_children: int | None = Field(default=None, ge=0, le=20)
    amenities: list[str] | None = None
    description: str | None = Field(default=None, max_length=500)


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hotel_id: UUID
    room_number: str
    floor: int
    type: str
    status: str
    price_per_night: Decimal
    capacity_adults: int
    capacity_children: int
    amenities: list[str]
    description: str | None = None
    is_active: bool
    created_at: datetime


class RoomListResponse(BaseModel):
    data: list[RoomResponse]
    pagination: Pagination


# =============================================================================
# Guests
# =============================================================================


class GuestCreateRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    phone: str = Field(..., min_length=6, max_length=25)
    nationality: str = Field(..., min_length=2, max_length=60)
    id_type: str = Field(..., pattern=r"^(national_id|passport|iqama|driving_license)$")
    id_number: str = Field(..., min_length=3, max_length=60)
    guest_type: str = Field(default="individual", pattern=r"^(individual|corporate|vip)$")
    notes: str | None = Field(default=None, max_length=2000)


class GuestUpdateRequest(BaseModel):
    """Partial update; only fields present in the body change."""

    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, min_length=6, max_length=25)
    nationality: str | None = Field(default=None, min_length=2, max_length=60)
    id_type: str | None = Field(
        default=None, pattern=r"^(national_id|passport|iqama|driving_license)$"
    )
    id_number: str | None = Field(default=None, min_length=3, max_length=60)
    guest_type: str | None = Field(default=None, pattern=r"^(individual|corporate|vip)$")
    notes: str | None = Field(default=None, max_length=2000)
    is_blacklisted: bool | None = None


class GuestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hotel_id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    phone: str
    nationality: str
    id_type: str
    id_number: str
    guest_type: str
    notes: str | None = None
    total_stays: int
    total_spent: Decimal
    is_blacklisted: bool
    created_at: datetime


class GuestListResponse(BaseModel):
    data: list[GuestResponse]
    pagination: Pagination


# =============================================================================
# Bookings
# =============================================================================


class BookingCreateRequest(BaseModel):
    """Stay dates are combined with the hotel's check-in and check-out times."""

    room_id: UUID
    guest_id: UUID
    check_in_date: date
    check_out_date: date
    source: str = Field(default="direct", pattern=r"^(direct|website|phone|walk_in|ota)$")

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreateRequest":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hotel_id: UUID
    booking_number: str
    room_id: UUID
    guest_id: UUID
    check_in_date: datetime
    check_out_date: datetime
    status: str
    source: str
    total_amount: Decimal
    paid_amount: Decimal
    payment_status: str
    created_at: datetime


class BookingPaymentChange(BaseModel):
    """Record a payment (``amount`` with ``method``) or correct the totals."""

    model_config = ConfigDict(use_enum_values=True)

    amount: Decimal | None = Field(default=None, gt=0)
    method: PaymentMethod | None = None
    reference: str | None = Field(default=None, max_length=100)
    status: PaymentStatus | None = None
    paid_amount: Decimal | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_method(self) -> "BookingPaymentChange":
        if self.amount is not None and self.method is None:
            raise ValueError("method is required with amount")
        return self


class BookingUpdateRequest(BaseModel):
    """Front desk changes to a booking; only fields present in the body apply."""

    model_config = ConfigDict(use_enum_values=True)

    notes: str | None = Field(default=None, max_length=2000)
    special_requests: str | None = Field(default=None, max_length=2000)
    status: BookingStatus | None = None
    cancellation_reason: str | None = Field(default=None, max_length=500)
    payment: BookingPaymentChange | None = None


class BookingRoomSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    room_number: str
    type: str
    floor: int


class BookingGuestSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    phone: str
    email: str | None = None


class BookingPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: Decimal
    method: str
    reference: str | None = None
    paid_at: datetime


class BookingDetailResponse(BookingResponse):
    """A booking with its room, guest and payment history."""

    actual_check_in: datetime | None = None
    actual_check_out: datetime | None = None
    payment_method: str | None = None
    balance_due: Decimal
    notes: str | None = None
    special_requests: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    room: BookingRoomSummary
    guest: BookingGuestSummary
    payments: list[BookingPaymentResponse]


class BookingListResponse(BaseModel):
    data: list[BookingResponse]
    pagination: Pagination


# =============================================================================
# Finance
# =============================================================================


class FinanceSummary(BaseModel):
    month_revenue: Decimal = Field(..., description="Active bookings checking out this month")
    last_month_revenue: Decimal
    month_paid: Decimal
    outstanding_balance: Decimal = Field(..., description="Unpaid remainder of active bookings")
    total_bookings: int
    paid_bookings: int
    partial_bookings: int
    pending_bookings: int
    refunded_bookings: int


class RecentPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: UUID
    booking_number: str
    room_number: str
    guest_name: str
    amount: Decimal
    method: str
    paid_at: datetime
    status: str


class FinanceOverviewResponse(BaseModel):
    summary: FinanceSummary
    recent_payments: list[RecentPaymentResponse]


class FinanceTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: UUID
    booking_number: str
    room_number: str
    guest_name: str
    total: Decimal
    paid_amount: Decimal
    remaining: Decimal
    latest_amount: Decimal
    method: str
    date: datetime
    status: str


class FinanceTransactionSummary(BaseModel):
    total_amount: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    count: int


class FinanceTransactionListResponse(BaseModel):
    data: list[FinanceTransactionResponse]
    summary: FinanceTransactionSummary
    pagination: Pagination


class MonthlyTrendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str = Field(..., description="Calendar month as YYYY-MM")
    revenue: Decimal
    paid: Decimal
    outstanding: Decimal
    bookings: int


class FinanceTrendsResponse(BaseModel):
    data: list[MonthlyTrendResponse]


# =============================================================================
# Dashboard
# =============================================================================


class DashboardStatsResponse(BaseModel):
    """Operational counters of the current hotel."""

    total_rooms: int = Field(..., description="Active rooms")
    available_rooms: int
    occupied_rooms: int
    occupancy_rate: float = Field(..., description="Occupied share of active rooms, in percent")
    today_check_ins: int
    today_check_outs: int
    pending_bookings: int
    total_guests: int
    total_bookings: int
    monthly_revenue: Decimal
    last_month_revenue: Decimal


# =============================================================================
# Hotel profile and settings
# =============================================================================


class HotelSettingsUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    phone: str | None = Field(default=None, min_length=6, max_length=25)
    logo: str | None = Field(default=None, max_length=500)
    settings: dict[str, Any] | None = None


class HotelProfileResponse(BaseModel):
    """The operator's hotel with its newest notifications."""

    id: UUID
    name: str
    slug: str
    email: str
    phone: str
    logo: str | None = None
    is_active: bool
    subscription_plan: str
    subscription_status: str
    subscription_end_date: datetime | None = None
    settings: dict[str, Any]
    notifications: list[dict[str, Any]]
