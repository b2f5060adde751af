"""Schemas for the subscription alert view."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from hotelops.subscription.alerts import AlertReport


class OwnerContactResponse(BaseModel):
    id: UUID | None = None
    name: str
    email: str
    phone: str
    is_active: bool | None = None


class AlertItemResponse(BaseModel):
    hotel_id: UUID
    hotel_name: str
    email: str
    phone: str
    subscription_status: str
    is_active: bool
    end_date: datetime
    days_remaining: int = Field(..., description="Negative once the subscription has expired")
    severity: str = Field(..., description="expired, critical, warning or info")
    owner: OwnerContactResponse


class MaintenanceSummary(BaseModel):
    updated_count: int
    affected_ids: list[UUID]


class AlertSummaryResponse(BaseModel):
    total_alerts: int
    expired: int
    critical: int
    warning: int
    info: int
    window_days: int
    maintenance: MaintenanceSummary


class AlertReportResponse(BaseModel):
    """Alerts ordered by days remaining ascending."""

    summary: AlertSummaryResponse
    items: list[AlertItemResponse]

    @classmethod
    def from_report(cls, report: AlertReport) -> "AlertReportResponse":
        return cls.model_validate(
            {
                "summary": report.summary.to_dict(),
                "items": [item.to_dict() for item in report.items],
            }
        )
