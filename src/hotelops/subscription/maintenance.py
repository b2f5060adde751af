"""Suspension of hotels whose subscription has run out.

The job converges ``subscription_status`` and ``is_active`` with the
subscription end date: every in-scope hotel whose end date has passed and
whose subscription is not cancelled becomes ``suspended`` and inactive.
Hotels already in that state are not selected again, so a second run
right after a first one reports zero updates.

The bulk UPDATE is a set operation over hotel ids and needs no locking;
concurrent runs converge to the same state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import ColumnElement, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import Request

from hotelops.core.audit import AuditLogger
from hotelops.core.auth import AuthContext, OwnershipScope
from hotelops.core.logging import LogContext
from hotelops.db.models.audit import AuditAction, AuditEntityType
from hotelops.db.models.hotel import Hotel, SubscriptionStatus
from hotelops.subscription.policy import as_utc, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class MaintenanceResult:
    """Outcome of one maintenance run."""

    updated_count: int = 0
    affected_ids: list[UUID] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "updated_count": self.updated_count,
            "affected_ids": [str(hotel_id) for hotel_id in self.affected_ids],
        }


def scope_criteria(scope: OwnershipScope) -> list[ColumnElement[bool]]:
    """Hotel criteria limiting a query to the hotels in ``scope``."""
    if scope.is_unrestricted:
        return []
    return [Hotel.created_by == scope.created_by]


def expired_criteria(now: datetime) -> list[ColumnElement[bool]]:
    """Hotels that are expired and not yet converged to suspended/inactive."""
    return [
        Hotel.subscription_end_date.is_not(None),
        Hotel.subscription_end_date < now,
        Hotel.subscription_status != SubscriptionStatus.CANCELLED.value,
        or_(
            Hotel.subscription_status != SubscriptionStatus.SUSPENDED.value,
            Hotel.is_active.is_(True),
        ),
    ]


async def run_maintenance(
    session: AsyncSession,
    scope: OwnershipScope | None = None,
    audit: AuditLogger | None = None,
    actor: AuthContext | None = None,
    request: Request | None = None,
    now: datetime | None = None,
) -> MaintenanceResult:
    """Suspend every in-scope hotel whose subscription has expired.

    Args:
        session: Session used for the select and the bulk update; committed here
        scope: Hotels the caller may act on (default: all)
        audit: When given together with ``actor``, one record is written per run
        actor: Operator on whose behalf the job runs
        request: Source of client metadata for the audit record
        now: Reference instant (default: current UTC time)

    Returns:
        MaintenanceResult with the count and ids of hotels changed by this run
    """
    scope = scope or OwnershipScope()
    now = as_utc(now) if now is not None else utc_now()

    criteria = [*scope_criteria(scope), *expired_criteria(now)]
    result = await session.execute(select(Hotel.id).where(*criteria))
    hotel_ids = list(result.scalars().all())

    if not hotel_ids:
        return MaintenanceResult()

    await session.execute(
        update(Hotel)
        .where(Hotel.id.in_(hotel_ids))
        .values(
            subscription_status=SubscriptionStatus.SUSPENDED.value,
            is_active=False,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    maintenance = MaintenanceResult(updated_count=len(hotel_ids), affected_ids=hotel_ids)
    logger.info(
        "subscription_maintenance_completed",
        updated_count=maintenance.updated_count,
        scope_created_by=str(scope.created_by) if scope.created_by else None,
    )

    if audit is not None and actor is not None:
        await audit.log_action(
            actor,
            AuditAction.SUBSCRIPTION_MAINTENANCE,
            AuditEntityType.SUBSCRIPTION,
            request=request,
            metadata={
                "updated_hotels_count": maintenance.updated_count,
                "updated_hotel_ids": [str(hotel_id) for hotel_id in hotel_ids],
            },
        )

    return maintenance


async def run_maintenance_job(
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> MaintenanceResult:
    """Platform-wide run for schedulers; no actor, so no audit record."""
    with LogContext(job="subscription_maintenance"):
        async with session_factory() as session:
            return await run_maintenance(session, OwnershipScope(), now=now)
