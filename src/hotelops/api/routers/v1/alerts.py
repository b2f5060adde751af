"""Subscription expiry alerts for platform operators."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Query, Request

from hotelops.api.dependencies import AuditWriter, PlatformAdmin, get_settings_dependency
from hotelops.api.schemas.alerts import AlertReportResponse
from hotelops.core.auth import OwnershipScope
from hotelops.db.dependencies import DatabaseSession
from hotelops.subscription.alerts import get_alerts, parse_window_days

logger = structlog.get_logger()

router = APIRouter(prefix="/platform/subscription-alerts", tags=["subscription-alerts"])

FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@router.get(
    "",
    response_model=AlertReportResponse,
    summary="Subscription alerts",
    description=(
        "Hotels whose subscription ends within the window, most urgent first. "
        "Runs the expiry maintenance job over the same hotels beforehand unless "
        "runMaintenance=false."
    ),
)
async def subscription_alerts(
    request: Request,
    auth: PlatformAdmin,
    db: DatabaseSession,
    audit: AuditWriter,
    window_days: Annotated[str | None, Query(alias="windowDays")] = None,
    run_maintenance: Annotated[str | None, Query(alias="runMaintenance")] = None,
) -> AlertReportResponse:
    config = get_settings_dependency(request).subscription
    window = parse_window_days(
        window_days,
        default=config.alert_default_window_days,
        maximum=config.alert_max_window_days,
    )
    maintain = (run_maintenance or "").strip().lower() not in FALSE_VALUES

    report = await get_alerts(
        db,
        window_days=window,
        scope=OwnershipScope.for_actor(auth),
        run_maintenance_first=maintain,
        audit=audit,
        actor=auth,
        request=request,
        max_window_days=config.alert_max_window_days,
    )
    logger.info(
        "subscription_alerts_served",
        window_days=window,
        total_alerts=report.summary.total_alerts,
        suspended=report.summary.maintenance.updated_count,
    )
    return AlertReportResponse.from_report(report)
