"""Operator (user) model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import (
    Base,
    PortableJSON,
    PortableUUID,
    TenantScopedMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
)


class User(UUIDPrimaryKeyMixin, TenantScopedMixin, TimestampMixin, Base):
    """An operator account.

    Platform roles (super_admin, sub_super_admin) have no hotel; every
    other role belongs to exactly one hotel. Email is unique per hotel,
    and among platform operators it is unique globally.
    """

    __tablename__ = "users"

    hotel_id: Mapped[UUID | None] = mapped_column(
        PortableUUID(), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=True, index=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    permissions: Mapped[list[str]] = mapped_column(PortableJSON(), nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Verification of delegated platform operators
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    created_by: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    refresh_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_changed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint("hotel_id", "email", name="uq_users_hotel_email"),
        # NULL hotel ids never collide in the constraint above
        Index(
            "uq_users_platform_email",
            "email",
            unique=True,
            sqlite_where=text("hotel_id IS NULL"),
            postgresql_where=text("hotel_id IS NULL"),
        ),
        Index("idx_users_role", "role"),
        Index("idx_users_created_by", "created_by"),
        Index("idx_users_is_verified", "is_verified"),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
