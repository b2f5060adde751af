"""Audit log model for privileged operations."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, PortableJSON, PortableUUID, UTCDateTime, UUIDPrimaryKeyMixin, utcnow


class AuditEntityType(str, Enum):
    """What kind of entity an audited action touched."""

    HOTEL = "hotel"
    USER = "user"
    SUBSCRIPTION = "subscription"
    VERIFICATION = "verification"
    AUTH = "auth"


class AuditAction(str, Enum):
    """Action labels written by the platform.

    Labels are free-form strings in storage; these are the ones this
    codebase emits.
    """

    HOTEL_CREATE = "hotel.create"
    HOTEL_UPDATE = "hotel.update"
    HOTEL_ACTIVATE = "hotel.activate"
    HOTEL_DEACTIVATE = "hotel.deactivate"
    HOTEL_SUSPEND = "hotel.suspend"
    SUBSCRIPTION_RENEW = "subscription.renew"
    SUBSCRIPTION_MAINTENANCE = "subscription.maintenance"
    USER_CREATE = "user.create"
    USER_UPDATE = "user.update"
    USER_ROLE_CHANGE = "user.role_change"
    USER_DEACTIVATE = "user.deactivate"
    USER_REACTIVATE = "user.reactivate"
    USER_VERIFY = "user.verify"


class AuditLog(UUIDPrimaryKeyMixin, Base):
    """Immutable, append-only record of a privileged action.

    No code path updates or deletes rows in this table.
    """

    __tablename__ = "audit_logs"

    actor_id: Mapped[UUID] = mapped_column(PortableUUID(), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(30), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    target_user_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    target_hotel_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)

    ip: Mapped[str | None] = mapped_column(String(45), nullable=True)  # IPv6 support
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata", PortableJSON(), nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_audit_actor_created", "actor_id", "created_at"),
        Index("idx_audit_entity", "entity_type", "entity_id", "created_at"),
        Index("idx_audit_action_created", "action", "created_at"),
        Index("idx_audit_target_hotel", "target_hotel_id"),
        Index("idx_audit_target_user", "target_user_id"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id),
            "actor_role": self.actor_role,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "target_user_id": str(self.target_user_id) if self.target_user_id else None,
            "target_hotel_id": str(self.target_hotel_id) if self.target_hotel_id else None,
            "ip": self.ip,
            "user_agent": self.user_agent,
            "metadata": self.details,
            "created_at": self.created_at.isoformat(),
        }
