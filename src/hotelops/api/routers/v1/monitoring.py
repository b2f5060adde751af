"""Sub super admin monitoring for the main super admin.

- GET /platform/sub-super-admins                - Scored, filtered overview
- GET /platform/sub-super-admins/{id}/activity  - Audit trail of one operator
"""

from uuid import UUID

from fastapi import APIRouter, Request

from hotelops.api.dependencies import AuditWriter, MainSuperAdmin
from hotelops.api.schemas.monitoring import ActivityResponse, MonitoringResponse
from hotelops.db.dependencies import DatabaseSession
from hotelops.risk.monitoring import MonitoringQuery, SubAdminMonitor

router = APIRouter(prefix="/platform/sub-super-admins", tags=["sub-admin-monitoring"])


@router.get(
    "",
    response_model=MonitoringResponse,
    summary="Sub super admin overview",
    description=(
        "Query parameters: page, limit, search, status (all|active|inactive), "
        "verification (all|verified|pending), activity (all|has_activity|no_activity), "
        "sortBy, sortOrder (asc|desc), from, to."
    ),
)
async def list_sub_admins(
    request: Request,
    auth: MainSuperAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> MonitoringResponse:
    query = MonitoringQuery.from_params(request.query_params)
    page = await SubAdminMonitor(db, audit).overview(query)
    return MonitoringResponse.from_page(page)


@router.get(
    "/{operator_id}/activity",
    response_model=ActivityResponse,
    summary="Sub super admin activity",
    description="Query parameters: page, limit, action, entityType, from, to.",
)
async def sub_admin_activity(
    operator_id: UUID,
    request: Request,
    auth: MainSuperAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
) -> ActivityResponse:
    report = await SubAdminMonitor(db, audit).activity(operator_id, request.query_params)
    return ActivityResponse.from_report(report)
