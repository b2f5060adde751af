"""Rooms owned by a hotel."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import (
    Base,
    PortableJSON,
    TenantScopedMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class RoomType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TWIN = "twin"
    SUITE = "suite"
    DELUXE = "deluxe"
    PRESIDENTIAL = "presidential"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class Room(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    """A bookable room. Room numbers are unique within a hotel."""

    __tablename__ = "rooms"

    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoomStatus.AVAILABLE.value
    )
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    capacity_adults: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    capacity_children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    amenities: Mapped[list[str]] = mapped_column(PortableJSON(), nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("hotel_id", "room_number", name="uq_rooms_hotel_number"),
        Index("idx_rooms_hotel_status", "hotel_id", "status"),
    )

