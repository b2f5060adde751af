"""Oversight of delegated platform operators (sub super admins).

Collects, for every sub super admin, what they provisioned and what they
did according to the audit log, scores the result with
:func:`hotelops.risk.scoring.score_risk`, and serves filtered, sorted and
paginated views for the main super admin.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotelops.core.audit import AuditFilter, AuditLogger
from hotelops.core.exceptions import ResourceNotFoundError, ValidationFailedError
from hotelops.core.permissions import PLATFORM_ROLES, Role
from hotelops.db.models.audit import AuditLog
from hotelops.db.models.hotel import Hotel
from hotelops.db.models.user import User
from hotelops.risk.scoring import (
    OperatorStats,
    RiskLevel,
    RiskSummary,
    is_sensitive_action,
    score_risk,
)
from hotelops.subscription.policy import as_utc, utc_now
from hotelops.utils.params import parse_date_range, parse_pagination
from hotelops.utils.text import escape_like, normalize_search_term

logger = structlog.get_logger(__name__)

RECENT_ACTIONS_LIMIT = 8
TOP_GROUPS_LIMIT = 10


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class VerificationFilter(str, Enum):
    ALL = "all"
    VERIFIED = "verified"
    PENDING = "pending"


class ActivityFilter(str, Enum):
    ALL = "all"
    HAS_ACTIVITY = "has_activity"
    NO_ACTIVITY = "no_activity"


class SortField(str, Enum):
    CREATED_AT = "createdAt"
    LAST_LOGIN = "lastLogin"
    OPERATIONS_COUNT = "operationsCount"
    OPERATIONS_IN_RANGE = "operationsInRange"
    OPERATIONS_24H = "operations24h"
    HOTELS_CREATED = "hotelsCreated"
    ACCOUNTS_CREATED = "accountsCreated"
    LAST_ACTIVITY_AT = "lastActivityAt"
    RISK_SCORE = "riskScore"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _choice(enum_cls: type[Enum], raw: str | None, default: Enum, name: str) -> Any:
    if raw is None or raw == "":
        return default
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise ValidationFailedError(f"Invalid monitoring query param: {name}", field=name) from exc


@dataclass
class MonitoringQuery:
    """Validated options for the operator overview."""

    page: int = 1
    limit: int = 20
    search: str = ""
    status: StatusFilter = StatusFilter.ALL
    verification: VerificationFilter = VerificationFilter.ALL
    activity: ActivityFilter = ActivityFilter.ALL
    sort_by: SortField = SortField.RISK_SCORE
    sort_order: SortOrder = SortOrder.DESC
    from_date: datetime | None = None
    to_date: datetime | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "MonitoringQuery":
        """Build from query-string parameters.

        Raises:
            ValidationFailedError: On an unknown enum value or a bad date range
        """
        page, limit = parse_pagination(params.get("page"), params.get("limit"))
        from_date, to_date = parse_date_range(params.get("from"), params.get("to"))
        return cls(
            page=page,
            limit=limit,
            search=normalize_search_term(params.get("search")),
            status=_choice(StatusFilter, params.get("status"), StatusFilter.ALL, "status"),
            verification=_choice(
                VerificationFilter, params.get("verification"), VerificationFilter.ALL, "verification"
            ),
            activity=_choice(ActivityFilter, params.get("activity"), ActivityFilter.ALL, "activity"),
            sort_by=_choice(SortField, params.get("sortBy"), SortField.RISK_SCORE, "sortBy"),
            sort_order=_choice(SortOrder, params.get("sortOrder"), SortOrder.DESC, "sortOrder"),
            from_date=from_date,
            to_date=to_date,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "search": self.search,
            "status": self.status.value,
            "verification": self.verification.value,
            "activity": self.activity.value,
            "sort_by": self.sort_by.value,
            "sort_order": self.sort_order.value,
            "from": self.from_date.isoformat() if self.from_date else None,
            "to": self.to_date.isoformat() if self.to_date else None,
        }


@dataclass
class OperatorOverview:
    """One sub super admin with stats, risk and latest actions."""

    user: User
    stats: OperatorStats
    risk: RiskSummary
    recent_actions: list[AuditLog] = field(default_factory=list)


@dataclass
class OverviewTotals:
    total_sub_admins: int = 0
    active_count: int = 0
    verified_count: int = 0
    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    hotels_created: int = 0
    accounts_created: int = 0
    operations_count: int = 0
    operations_in_range: int = 0

    @classmethod
    def from_items(cls, items: list[OperatorOverview]) -> "OverviewTotals":
        return cls(
            total_sub_admins=len(items),
            active_count=sum(1 for item in items if item.user.is_active),
            verified_count=sum(1 for item in items if item.user.is_verified),
            high_risk_count=sum(1 for item in items if item.risk.level == RiskLevel.HIGH),
            medium_risk_count=sum(1 for item in items if item.risk.level == RiskLevel.MEDIUM),
            low_risk_count=sum(1 for item in items if item.risk.level == RiskLevel.LOW),
            hotels_created=sum(item.stats.hotels_created for item in items),
            accounts_created=sum(item.stats.accounts_created for item in items),
            operations_count=sum(item.stats.operations_count for item in items),
            operations_in_range=sum(item.stats.operations_in_range for item in items),
        )


@dataclass
class MonitoringPage:
    overview: OverviewTotals
    items: list[OperatorOverview]
    total: int
    page: int
    limit: int
    query: MonitoringQuery

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.total else 0


@dataclass
class ActivityReport:
    """Paginated audit trail of one operator with grouped counts."""

    user: User
    items: list[AuditLog]
    total: int
    by_action: list[tuple[str, int]]
    by_entity: list[tuple[str, int]]
    page: int
    limit: int
    filters: dict[str, Any]

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.total else 0


def _timestamp(value: datetime | None) -> float:
    return as_utc(value).timestamp() if value is not None else 0.0


SORT_KEYS = {
    SortField.CREATED_AT: lambda item: _timestamp(item.user.created_at),
    SortField.LAST_LOGIN: lambda item: _timestamp(item.user.last_login),
    SortField.OPERATIONS_COUNT: lambda item: item.stats.operations_count,
    SortField.OPERATIONS_IN_RANGE: lambda item: item.stats.operations_in_range,
    SortField.OPERATIONS_24H: lambda item: item.stats.operations_24h,
    SortField.HOTELS_CREATED: lambda item: item.stats.hotels_created,
    SortField.ACCOUNTS_CREATED: lambda item: item.stats.accounts_created,
    SortField.LAST_ACTIVITY_AT: lambda item: _timestamp(item.stats.last_activity_at),
    SortField.RISK_SCORE: lambda item: item.risk.score,
}


class SubAdminMonitor:
    """Read-side aggregation over users, hotels and audit records."""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit

    async def _load_operators(self, query: MonitoringQuery) -> list[User]:
        stmt = select(User).where(User.role == Role.SUB_SUPER_ADMIN.value)
        if query.status == StatusFilter.ACTIVE:
            stmt = stmt.where(User.is_active.is_(True))
        elif query.status == StatusFilter.INACTIVE:
            stmt = stmt.where(User.is_active.is_(False))
        if query.verification == VerificationFilter.VERIFIED:
            stmt = stmt.where(User.is_verified.is_(True))
        elif query.verification == VerificationFilter.PENDING:
            stmt = stmt.where(User.is_verified.is_(False))
        if query.search:
            pattern = f"%{escape_like(query.search)}%"
            stmt = stmt.where(
                or_(
                    User.name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    User.phone.ilike(pattern, escape="\\"),
                )
            )
        stmt = stmt.order_by(User.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _count_by(self, column, *criteria) -> dict[UUID, int]:
        result = await self.session.execute(
            select(column, func.count()).where(*criteria).group_by(column)
        )
        return {key: int(count) for key, count in result.all()}

    async def collect_stats(
        self,
        operator_ids: list[UUID],
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        now: datetime | None = None,
    ) -> dict[UUID, OperatorStats]:
        """Aggregate per-operator stats for ``operator_ids``."""
        now = as_utc(now) if now is not None else utc_now()
        stats = {operator_id: OperatorStats() for operator_id in operator_ids}
        if not operator_ids:
            return stats

        actor_match = AuditLog.actor_id.in_(operator_ids)

        hotels = await self._count_by(Hotel.created_by, Hotel.created_by.in_(operator_ids))
        accounts = await self._count_by(
            User.created_by,
            User.created_by.in_(operator_ids),
            User.role.not_in([role.value for role in PLATFORM_ROLES]),
        )

        range_criteria = [actor_match]
        if from_date is not None:
            range_criteria.append(AuditLog.created_at >= from_date)
        if to_date is not None:
            range_criteria.append(AuditLog.created_at <= to_date)
        in_range = await self._count_by(AuditLog.actor_id, *range_criteria)
        last_24h = await self._count_by(
            AuditLog.actor_id, actor_match, AuditLog.created_at >= now - timedelta(hours=24)
        )

        totals = await self.session.execute(
            select(AuditLog.actor_id, func.count(), func.max(AuditLog.created_at))
            .where(actor_match)
            .group_by(AuditLog.actor_id)
        )
        for actor_id, count, last_at in totals.all():
            stats[actor_id].operations_count = int(count)
            stats[actor_id].last_activity_at = as_utc(last_at) if last_at else None

        # Sensitive actions are matched by pattern on the distinct action labels
        by_action = await self.session.execute(
            select(AuditLog.actor_id, AuditLog.action, func.count())
            .where(actor_match)
            .group_by(AuditLog.actor_id, AuditLog.action)
        )
        for actor_id, action, count in by_action.all():
            if is_sensitive_action(action):
                stats[actor_id].suspicious_operations += int(count)

        for operator_id, item in stats.items():
            item.hotels_created = hotels.get(operator_id, 0)
            item.accounts_created = accounts.get(operator_id, 0)
            item.operations_in_range = in_range.get(operator_id, 0)
            item.operations_24h = last_24h.get(operator_id, 0)
        return stats

    async def recent_actions(
        self, operator_ids: list[UUID], per_operator: int = RECENT_ACTIONS_LIMIT
    ) -> dict[UUID, list[AuditLog]]:
        """Latest ``per_operator`` audit records of each operator."""
        if not operator_ids:
            return {}
        position = (
            func.row_number()
            .over(
                partition_by=AuditLog.actor_id,
                order_by=(AuditLog.created_at.desc(), AuditLog.id.desc()),
            )
            .label("position")
        )
        ranked = (
            select(AuditLog.id, position).where(AuditLog.actor_id.in_(operator_ids)).subquery()
        )
        result = await self.session.execute(
            select(AuditLog)
            .join(ranked, ranked.c.id == AuditLog.id)
            .where(ranked.c.position <= per_operator)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        )
        recent: dict[UUID, list[AuditLog]] = {operator_id: [] for operator_id in operator_ids}
        for record in result.scalars():
            recent[record.actor_id].append(record)
        return recent

    async def overview(
        self, query: MonitoringQuery | None = None, now: datetime | None = None
    ) -> MonitoringPage:
        """Filtered, scored and sorted page of sub super admins."""
        query = query or MonitoringQuery()
        now = as_utc(now) if now is not None else utc_now()

        operators = await self._load_operators(query)
        operator_ids = [operator.id for operator in operators]
        stats = await self.collect_stats(operator_ids, query.from_date, query.to_date, now)
        recent = await self.recent_actions(operator_ids)

        items = [
            OperatorOverview(
                user=operator,
                stats=stats[operator.id],
                risk=score_risk(
                    is_active=operator.is_active,
                    is_verified=operator.is_verified,
                    created_at=operator.created_at,
                    stats=stats[operator.id],
                    now=now,
                ),
                recent_actions=recent.get(operator.id, []),
            )
            for operator in operators
        ]

        if query.activity == ActivityFilter.HAS_ACTIVITY:
            items = [item for item in items if item.stats.operations_in_range > 0]
        elif query.activity == ActivityFilter.NO_ACTIVITY:
            items = [item for item in items if item.stats.operations_in_range == 0]

        items.sort(key=SORT_KEYS[query.sort_by], reverse=query.sort_order == SortOrder.DESC)

        start = (query.page - 1) * query.limit
        logger.debug(
            "sub_admin_overview_built",
            operators=len(items),
            sort_by=query.sort_by.value,
        )
        return MonitoringPage(
            overview=OverviewTotals.from_items(items),
            items=items[start : start + query.limit],
            total=len(items),
            page=query.page,
            limit=query.limit,
            query=query,
        )

    async def activity(self, operator_id: UUID, params: Mapping[str, str]) -> ActivityReport:
        """Audit trail of one sub super admin.

        Raises:
            ResourceNotFoundError: If no sub super admin has this id
            ValidationFailedError: On malformed dates or an inverted range
        """
        result = await self.session.execute(
            select(User).where(User.id == operator_id, User.role == Role.SUB_SUPER_ADMIN.value)
        )
        operator = result.scalar_one_or_none()
        if operator is None:
            raise ResourceNotFoundError("Sub super admin", operator_id)

        page, limit = parse_pagination(params.get("page"), params.get("limit"))
        from_date, to_date = parse_date_range(params.get("from"), params.get("to"))
        action = (params.get("action") or "").strip() or None
        entity_type = (params.get("entityType") or "").strip() or None

        filters = AuditFilter(
            actor_id=operator_id,
            action=action,
            entity_type=entity_type,
            start_date=from_date,
            end_date=to_date,
        )
        items, total = await self.audit.query(filters, limit=limit, offset=(page - 1) * limit)
        by_action = await self.audit.count_by("action", filters, limit=TOP_GROUPS_LIMIT)
        by_entity = await self.audit.count_by("entity_type", filters, limit=TOP_GROUPS_LIMIT)

        return ActivityReport(
            user=operator,
            items=items,
            total=total,
            by_action=by_action,
            by_entity=by_entity,
            page=page,
            limit=limit,
            filters={
                "action": action,
                "entity_type": entity_type,
                "from": from_date.isoformat() if from_date else None,
                "to": to_date.isoformat() if to_date else None,
            },
        )
