"""Schemas for sub super admin monitoring."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from hotelops.api.schemas.audit import AuditLogResponse
from hotelops.api.schemas.common import CountItem, Pagination
from hotelops.api.schemas.users import UserResponse
from hotelops.risk.monitoring import ActivityReport, MonitoringPage, OperatorOverview

# =============================================================================
# Operator overview
# =============================================================================


class OperatorStatsResponse(BaseModel):
    hotels_created: int
    accounts_created: int
    operations_count: int
    operations_in_range: int
    operations_24h: int
    suspicious_operations: int
    last_activity_at: datetime | None = None


class RiskResponse(BaseModel):
    score: int = Field(..., ge=0, description="Sum of triggered weights; not capped")
    level: str = Field(..., description="low, medium or high")
    flags: list[str]


class OperatorOverviewResponse(BaseModel):
    user: UserResponse
    stats: OperatorStatsResponse
    risk: RiskResponse
    recent_actions: list[AuditLogResponse]

    @classmethod
    def from_item(cls, item: OperatorOverview) -> "OperatorOverviewResponse":
        return cls(
            user=UserResponse.model_validate(item.user),
            stats=OperatorStatsResponse.model_validate(item.stats.to_dict()),
            risk=RiskResponse.model_validate(item.risk.to_dict()),
            recent_actions=[AuditLogResponse.model_validate(r) for r in item.recent_actions],
        )


class OverviewTotalsResponse(BaseModel):
    total_sub_admins: int
    active_count: int
    verified_count: int
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int
    hotels_created: int
    accounts_created: int
    operations_count: int
    operations_in_range: int


class MonitoringResponse(BaseModel):
    overview: OverviewTotalsResponse
    data: list[OperatorOverviewResponse]
    pagination: Pagination
    filters: dict[str, Any]

    @classmethod
    def from_page(cls, page: MonitoringPage) -> "MonitoringResponse":
        return cls(
            overview=OverviewTotalsResponse.model_validate(page.overview, from_attributes=True),
            data=[OperatorOverviewResponse.from_item(item) for item in page.items],
            pagination=Pagination(
                page=page.page, limit=page.limit, total=page.total, pages=page.pages
            ),
            filters=page.query.to_dict(),
        )


# =============================================================================
# Operator activity
# =============================================================================


class ActivityResponse(BaseModel):
    user: UserResponse
    data: list[AuditLogResponse]
    by_action: list[CountItem]
    by_entity: list[CountItem]
    pagination: Pagination
    filters: dict[str, Any]

    @classmethod
    def from_report(cls, report: ActivityReport) -> "ActivityResponse":
        return cls(
            user=UserResponse.model_validate(report.user),
            data=[AuditLogResponse.model_validate(record) for record in report.items],
            by_action=[CountItem(value=v, count=c) for v, c in report.by_action],
            by_entity=[CountItem(value=v, count=c) for v, c in report.by_entity],
            pagination=Pagination(
                page=report.page, limit=report.limit, total=report.total, pages=report.pages
            ),
            filters=report.filters,
        )


class VerifyResponse(BaseModel):
    id: UUID
    is_verified: bool
    verified_at: datetime | None = None
