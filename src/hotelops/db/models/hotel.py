"""Hotel (tenant) model."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import (
    Base,
    PortableJSON,
    PortableUUID,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    utcnow,
)


class SubscriptionPlan(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


class NotificationType(str, Enum):
    BOOKING_NEW = "booking_new"
    BOOKING_CANCELLED = "booking_cancelled"
    PAYMENT_RECEIVED = "payment_received"
    DAILY_REPORT = "daily_report"


def default_hotel_settings() -> dict[str, Any]:
    """Settings a newly provisioned hotel starts with."""
    return {
        "currency": "SAR",
        "timezone": "Asia/Riyadh",
        "language": "ar",
        "check_in_time": "14:00",
        "check_out_time": "12:00",
        "tax_rate": 15,
        "theme": "dark",
        "notifications": {
            "new_booking": True,
            "cancelled_booking": True,
            "payment_received": True,
            "daily_report": True,
        },
    }


class Hotel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tenant of the platform.

    A hotel whose subscription is suspended or cancelled must have
    ``is_active = False``; the subscription maintenance job converges
    expired subscriptions to that state.
    """

    __tablename__ = "hotels"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    address: Mapped[dict[str, Any]] = mapped_column(PortableJSON(), nullable=False, default=dict)

    # Subscription
    subscription_plan: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionPlan.FREE.value
    )
    subscription_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value
    )
    subscription_start_date: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    subscription_payment_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    # None means unlimited (trial or complimentary)
    subscription_end_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    settings: Mapped[dict[str, Any]] = mapped_column(
        PortableJSON(), nullable=False, default=default_hotel_settings
    )
    notifications_log: Mapped[list[dict[str, Any]]] = mapped_column(
        PortableJSON(), nullable=False, default=list
    )
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Operator that provisioned the hotel; sub-super-admins only manage their own
    created_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)

    __table_args__ = (
        Index("idx_hotels_is_active", "is_active"),
        Index("idx_hotels_subscription_status", "subscription_status"),
        Index("idx_hotels_subscription_end", "subscription_end_date"),
        Index("idx_hotels_created_by", "created_by"),
    )

    def __repr__(self) -> str:
        return f"<Hotel {self.slug} active={self.is_active}>"
