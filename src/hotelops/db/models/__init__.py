"""Database models for HotelOps."""

from .audit import AuditAction, AuditEntityType, AuditLog
from .base import (
    Base,
    PortableJSON,
    PortableUUID,
    TenantScopedMixin,
    TimestampMixin,
    UTCDateTime,
)
from .hotel import (
    Hotel,
    NotificationType,
    SubscriptionPlan,
    SubscriptionStatus,
    default_hotel_settings,
)
from .booking import Booking, BookingPayment, BookingStatus, PaymentMethod, PaymentStatus
from .guest import Guest
from .room import Room, RoomStatus, RoomType
from .user import User

__all__ = [
    "Base",
    "PortableJSON",
    "PortableUUID",
    "TenantScopedMixin",
    "TimestampMixin",
    "UTCDateTime",
    "Hotel",
    "NotificationType",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "default_hotel_settings",
    "User",
    "Room",
    "RoomStatus",
    "RoomType",
    "Guest",
    "Booking",
    "BookingStatus",
    "BookingPayment",
    "PaymentMethod",
    "PaymentStatus",
    "AuditLog",
    "AuditAction",
    "AuditEntityType",
]
