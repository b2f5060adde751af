"""Subscription expiry alerts for platform dashboards."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from hotelops.core.audit import AuditLogger
from hotelops.core.auth import AuthContext, OwnershipScope
from hotelops.core.permissions import Role
from hotelops.db.models.hotel import Hotel
from hotelops.db.models.user import User
from hotelops.subscription.maintenance import MaintenanceResult, run_maintenance, scope_criteria
from hotelops.subscription.policy import as_utc, days_remaining, utc_now
from hotelops.utils.params import clamp, parse_int

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 30


class AlertSeverity(str, Enum):
    """Urgency tiers, most urgent first."""

    EXPIRED = "expired"
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


def classify_severity(remaining: int) -> AlertSeverity:
    if remaining < 0:
        return AlertSeverity.EXPIRED
    if remaining <= 1:
        return AlertSeverity.CRITICAL
    if remaining <= 3:
        return AlertSeverity.WARNING
    return AlertSeverity.INFO


def parse_window_days(
    raw: Any,
    default: int = DEFAULT_WINDOW_DAYS,
    maximum: int = MAX_WINDOW_DAYS,
) -> int:
    """Parse a window from user input, clamped to [1, maximum].

    The leading integer is used (``"10d"`` gives 10); input without one
    falls back to the default.
    """
    return clamp(parse_int(raw, default), 1, maximum)


@dataclass(frozen=True)
class OwnerContact:
    """Contact details of a hotel's owning operator."""

    id: UUID | None
    name: str
    email: str
    phone: str
    is_active: bool | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id) if self.id else None,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "is_active": self.is_active,
        }


UNKNOWN_OWNER = OwnerContact(id=None, name="-", email="-", phone="-", is_active=None)


@dataclass
class AlertItem:
    hotel_id: UUID
    hotel_name: str
    email: str
    phone: str
    subscription_status: str
    is_active: bool
    end_date: datetime
    days_remaining: int
    severity: AlertSeverity
    owner: OwnerContact = UNKNOWN_OWNER

    def to_dict(self) -> dict[str, Any]:
        return {
            "hotel_id": str(self.hotel_id),
            "hotel_name": self.hotel_name,
            "email": self.email,
            "phone": self.phone,
            "subscription_status": self.subscription_status,
            "is_active": self.is_active,
            "end_date": self.end_date.isoformat(),
            "days_remaining": self.days_remaining,
            "severity": self.severity.value,
            "owner": self.owner.to_dict(),
        }


@dataclass
class AlertSummary:
    total_alerts: int = 0
    expired: int = 0
    critical: int = 0
    warning: int = 0
    info: int = 0
    window_days: int = DEFAULT_WINDOW_DAYS
    maintenance: MaintenanceResult = field(default_factory=MaintenanceResult)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_alerts": self.total_alerts,
            "expired": self.expired,
            "critical": self.critical,
            "warning": self.warning,
            "info": self.info,
            "window_days": self.window_days,
            "maintenance": self.maintenance.to_dict(),
        }


@dataclass
class AlertReport:
    summary: AlertSummary
    items: list[AlertItem]


async def resolve_owners(session: AsyncSession, hotel_ids: list[UUID]) -> dict[UUID, OwnerContact]:
    """Earliest-created admin operator of each hotel."""
    if not hotel_ids:
        return {}
    result = await session.execute(
        select(User)
        .where(User.hotel_id.in_(hotel_ids), User.role == Role.ADMIN.value)
        .order_by(User.created_at.asc(), User.id.asc())
    )
    owners: dict[UUID, OwnerContact] = {}
    for admin in result.scalars():
        if admin.hotel_id is None or admin.hotel_id in owners:
            continue
        owners[admin.hotel_id] = OwnerContact(
            id=admin.id,
            name=admin.name or "-",
            email=admin.email or "-",
            phone=admin.phone or "-",
            is_active=admin.is_active,
        )
    return owners


async def get_alerts(
    session: AsyncSession,
    window_days: int = DEFAULT_WINDOW_DAYS,
    scope: OwnershipScope | None = None,
    run_maintenance_first: bool = True,
    audit: AuditLogger | None = None,
    actor: AuthContext | None = None,
    request: Request | None = None,
    now: datetime | None = None,
    max_window_days: int = MAX_WINDOW_DAYS,
) -> AlertReport:
    """Hotels whose subscription ends within ``window_days``, most urgent first.

    Expired hotels are included (negative days remaining). When
    ``run_maintenance_first`` is set the maintenance job runs first over the
    same scope and its result is reported in the summary.
    """
    scope = scope or OwnershipScope()
    now = as_utc(now) if now is not None else utc_now()
    window_days = min(max(window_days, 1), max_window_days)

    maintenance = MaintenanceResult()
    if run_maintenance_first:
        maintenance = await run_maintenance(
            session, scope, audit=audit, actor=actor, request=request, now=now
        )

    result = await session.execute(
        select(Hotel)
        .where(*scope_criteria(scope), Hotel.subscription_end_date.is_not(None))
        .order_by(Hotel.subscription_end_date.asc())
        .execution_options(populate_existing=True)
    )
    hotels = list(result.scalars().all())

    items: list[AlertItem] = []
    for hotel in hotels:
        remaining = days_remaining(hotel.subscription_end_date, now)
        if remaining > window_days:
            continue
        items.append(
            AlertItem(
                hotel_id=hotel.id,
                hotel_name=hotel.name,
                email=hotel.email,
                phone=hotel.phone,
                subscription_status=hotel.subscription_status,
                is_active=hotel.is_active,
                end_date=hotel.subscription_end_date,
                days_remaining=remaining,
                severity=classify_severity(remaining),
            )
        )

    owners = await resolve_owners(session, [item.hotel_id for item in items])
    for item in items:
        item.owner = owners.get(item.hotel_id, UNKNOWN_OWNER)

    items.sort(key=lambda item: item.days_remaining)

    summary = AlertSummary(
        total_alerts=len(items),
        window_days=window_days,
        maintenance=maintenance,
    )
    for item in items:
        count = getattr(summary, item.severity.value)
        setattr(summary, item.severity.value, count + 1)

    return AlertReport(summary=summary, items=items)
