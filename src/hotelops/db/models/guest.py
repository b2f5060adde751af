"""Guest profiles owned by a hotel."""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TenantScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Guest(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    """A guest profile kept by one hotel."""

    __tablename__ = "guests"

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    nationality: Mapped[str] = mapped_column(String(60), nullable=False)
    id_type: Mapped[str] = mapped_column(String(20), nullable=False)
    id_number: Mapped[str] = mapped_column(String(60), nullable=False)
    guest_type: Mapped[str] = mapped_column(String(20), nullable=False, default="individual")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_stays: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    is_blacklisted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_guests_hotel_id_number", "hotel_id", "id_number"),
        Index("idx_guests_hotel_name", "hotel_id", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
