"""Audit log listing for platform operators."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from hotelops.api.dependencies import AuditWriter, PlatformAdmin
from hotelops.api.schemas.audit import AuditLogListResponse, AuditLogResponse
from hotelops.api.schemas.common import Pagination
from hotelops.core.audit import AuditFilter
from hotelops.core.hotels import HotelService
from hotelops.db.dependencies import DatabaseSession
from hotelops.utils.params import parse_date_range, parse_pagination

router = APIRouter(prefix="/platform/audit-logs", tags=["audit-logs"])


@router.get(
    "",
    response_model=AuditLogListResponse,
    summary="List audit records",
    description=(
        "Newest first. The main super admin sees every record; a sub super admin "
        "sees records they wrote and records targeting hotels they created."
    ),
)
async def list_audit_logs(
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
    action: str | None = None,
    entity_type: Annotated[str | None, Query(alias="entityType")] = None,
    actor_id: Annotated[UUID | None, Query(alias="actorId")] = None,
    hotel_id: Annotated[UUID | None, Query(alias="hotelId")] = None,
    date_from: Annotated[str | None, Query(alias="from")] = None,
    date_to: Annotated[str | None, Query(alias="to")] = None,
    page: str | None = None,
    limit: str | None = None,
) -> AuditLogListResponse:
    page_number, page_size = parse_pagination(page, limit)
    start_date, end_date = parse_date_range(date_from, date_to)

    filters = AuditFilter(
        actor_id=actor_id,
        action=action or None,
        entity_type=entity_type or None,
        target_hotel_id=hotel_id,
        start_date=start_date,
        end_date=end_date,
    )
    managed = await HotelService(db).managed_hotel_ids(auth)
    if managed is not None:
        filters.visible_to = (auth.user_id, managed)

    records, total = await audit.query(
        filters, limit=page_size, offset=(page_number - 1) * page_size
    )
    return AuditLogListResponse(
        data=[AuditLogResponse.model_validate(record) for record in records],
        pagination=Pagination.build(page_number, page_size, total),
    )
