"""Revenue and payment reporting for the current hotel.

Every query aggregates ``Booking`` rows without a hotel condition of its
own; the tenant isolation hook restricts the sums and counts to the hotel
of the request context. Cancelled and no-show bookings are excluded
throughout.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, extract, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelops.core.context import require_tenant_from_context
from hotelops.core.frontdesk import CENT, INACTIVE_BOOKING_STATUSES, month_start
from hotelops.db.models import Booking, BookingPayment, Guest, PaymentStatus, Room
from hotelops.subscription.policy import utc_now
from hotelops.utils.params import clamp

RECENT_PAYMENTS_LIMIT = 8
DEFAULT_TREND_MONTHS = 6
MIN_TREND_MONTHS = 3
MAX_TREND_MONTHS = 24

ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Database sums (float on SQLite, Decimal elsewhere) as cents."""
    return Decimal(str(value or 0)).quantize(CENT)


def _active_booking():
    return Booking.status.not_in(INACTIVE_BOOKING_STATUSES)


def _outstanding_sum():
    remaining = Booking.total_amount - Booking.paid_amount
    return func.coalesce(func.sum(case((remaining > 0, remaining), else_=0)), 0)


@dataclass
class RecentPayment:
    booking_id: UUID
    booking_number: str
    room_number: str
    guest_name: str
    amount: Decimal
    method: str
    paid_at: datetime
    status: str


@dataclass
class FinanceOverview:
    month_revenue: Decimal
    last_month_revenue: Decimal
    month_paid: Decimal
    outstanding_balance: Decimal
    total_bookings: int
    payment_status_counts: dict[str, int]
    recent_payments: list[RecentPayment] = field(default_factory=list)


@dataclass
class TransactionRow:
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


@dataclass
class TransactionPage:
    rows: list[TransactionRow]
    total: int
    total_amount: Decimal
    total_paid: Decimal

    @property
    def total_outstanding(self) -> Decimal:
        return max(self.total_amount - self.total_paid, ZERO)


@dataclass
class MonthlyTrend:
    month: str
    revenue: Decimal
    paid: Decimal
    outstanding: Decimal
    bookings: int


async def finance_overview(db: AsyncSession, now: datetime | None = None) -> FinanceOverview:
    """Month-to-date revenue, balances and the latest payments.

    Revenue is attributed to the month a booking checks out in.
    """
    require_tenant_from_context()
    now = now or utc_now()
    this_month = month_start(now)
    next_month = month_start(now, 1)
    last_month = month_start(now, -1)
    active = _active_booking()

    month_revenue, month_paid = (
        await db.execute(
            select(
                func.coalesce(func.sum(Booking.total_amount), 0),
                func.coalesce(func.sum(Booking.paid_amount), 0),
            ).where(
                active,
                Booking.check_out_date >= this_month,
                Booking.check_out_date < next_month,
            )
        )
    ).one()
    last_month_revenue = (
        await db.execute(
            select(func.coalesce(func.sum(Booking.total_amount), 0)).where(
                active,
                Booking.check_out_date >= last_month,
                Booking.check_out_date < this_month,
            )
        )
    ).scalar_one()
    outstanding = (await db.execute(select(_outstanding_sum()).where(active))).scalar_one()

    status_counts = {status.value: 0 for status in PaymentStatus}
    rows = await db.execute(
        select(Booking.payment_status, func.count())
        .where(active)
        .group_by(Booking.payment_status)
    )
    for payment_status, count in rows.all():
        if payment_status in status_counts:
            status_counts[payment_status] = int(count)

    total_bookings = (
        await db.execute(select(func.count()).select_from(Booking).where(active))
    ).scalar_one()

    recent = await db.execute(
        select(
            BookingPayment,
            Booking.booking_number,
            Booking.payment_status,
            Room.room_number,
            Guest.first_name,
            Guest.last_name,
        )
        .join(Booking, BookingPayment.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .join(Guest, Booking.guest_id == Guest.id)
        .where(active)
        .order_by(BookingPayment.paid_at.desc(), BookingPayment.id.desc())
        .limit(RECENT_PAYMENTS_LIMIT)
    )
    recent_payments = [
        RecentPayment(
            booking_id=payment.booking_id,
            booking_number=number,
            room_number=room_number,
            guest_name=f"{first_name} {last_name}".strip(),
            amount=money(payment.amount),
            method=payment.method,
            paid_at=payment.paid_at,
            status=payment_status,
        )
        for payment, number, payment_status, room_number, first_name, last_name in recent.all()
    ]

    return FinanceOverview(
        month_revenue=money(month_revenue),
        last_month_revenue=money(last_month_revenue),
        month_paid=money(month_paid),
        outstanding_balance=money(outstanding),
        total_bookings=total_bookings,
        payment_status_counts=status_counts,
        recent_payments=recent_payments,
    )


async def finance_transactions(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    payment_status: str | None = None,
    method: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
) -> TransactionPage:
    """Bookings with their payment position, newest first.

    ``method`` matches the booking's last payment method or any payment
    recorded with it. The date range applies to booking creation.
    """
    require_tenant_from_context()
    criteria = [_active_booking()]
    if payment_status:
        criteria.append(Booking.payment_status == payment_status)
    if method:
        criteria.append(
            or_(
                Booking.payment_method == method,
                Booking.id.in_(
                    select(BookingPayment.booking_id).where(BookingPayment.method == method)
                ),
            )
        )
    if created_from is not None:
        criteria.append(Booking.created_at >= created_from)
    if created_to is not None:
        criteria.append(Booking.created_at <= created_to)

    total_amount, total_paid, count = (
        await db.execute(
            select(
                func.coalesce(func.sum(Booking.total_amount), 0),
                func.coalesce(func.sum(Booking.paid_amount), 0),
                func.count(),
            ).where(*criteria)
        )
    ).one()

    result = await db.execute(
        select(Booking, Room.room_number, Guest.first_name, Guest.last_name)
        .join(Room, Booking.room_id == Room.id)
        .join(Guest, Booking.guest_id == Guest.id)
        .where(*criteria)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    page_rows = result.all()

    latest: dict[UUID, BookingPayment] = {}
    booking_ids = [booking.id for booking, *_ in page_rows]
    if booking_ids:
        payments = await db.execute(
            select(BookingPayment)
            .where(BookingPayment.booking_id.in_(booking_ids))
            .order_by(BookingPayment.paid_at.asc())
        )
        for payment in payments.scalars():
            latest[payment.booking_id] = payment

    rows = []
    for booking, room_number, first_name, last_name in page_rows:
        last_payment = latest.get(booking.id)
        total = money(booking.total_amount)
        paid = money(booking.paid_amount)
        rows.append(
            TransactionRow(
                booking_id=booking.id,
                booking_number=booking.booking_number,
                room_number=room_number,
                guest_name=f"{first_name} {last_name}".strip(),
                total=total,
                paid_amount=paid,
                remaining=max(total - paid, ZERO),
                latest_amount=money(last_payment.amount) if last_payment else ZERO,
                method=(last_payment.method if last_payment else booking.payment_method) or "cash",
                date=last_payment.paid_at if last_payment else booking.updated_at,
                status=booking.payment_status,
            )
        )

    return TransactionPage(
        rows=rows,
        total=int(count),
        total_amount=money(total_amount),
        total_paid=money(total_paid),
    )


async def finance_trends(
    db: AsyncSession, months: int = DEFAULT_TREND_MONTHS, now: datetime | None = None
) -> list[MonthlyTrend]:
    """Per-month revenue, payments, balances and booking counts.

    Covers the last ``months`` calendar months (3 to 24) up to and including
    the current one, oldest first; months without bookings are zero-filled.
    """
    require_tenant_from_context()
    months = clamp(months, MIN_TREND_MONTHS, MAX_TREND_MONTHS)
    now = now or utc_now()
    first_month = month_start(now, -(months - 1))
    end = month_start(now, 1)

    year = extract("year", Booking.check_out_date)
    month = extract("month", Booking.check_out_date)
    rows = await db.execute(
        select(
            year,
            month,
            func.coalesce(func.sum(Booking.total_amount), 0),
            func.coalesce(func.sum(Booking.paid_amount), 0),
            _outstanding_sum(),
            func.count(),
        )
        .where(
            _active_booking(),
            Booking.check_out_date >= first_month,
            Booking.check_out_date < end,
        )
        .group_by(year, month)
    )

    totals: dict[str, tuple] = defaultdict(lambda: (0, 0, 0, 0))
    for row_year, row_month, revenue, paid, outstanding, count in rows.all():
        totals[f"{int(row_year):04d}-{int(row_month):02d}"] = (revenue, paid, outstanding, count)

    trends = []
    for index in range(months):
        key = f"{month_start(first_month, index):%Y-%m}"
        revenue, paid, outstanding, count = totals[key]
        trends.append(
            MonthlyTrend(
                month=key,
                revenue=money(revenue),
                paid=money(paid),
                outstanding=money(outstanding),
                bookings=int(count),
            )
        )
    return trends
