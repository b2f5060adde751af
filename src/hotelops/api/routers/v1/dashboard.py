"""Operational dashboard for the current hotel."""

from fastapi import APIRouter

from hotelops.api.dependencies import TenantOperator
from hotelops.api.schemas.tenant import DashboardStatsResponse
from hotelops.core.frontdesk import dashboard_stats
from hotelops.db.dependencies import DatabaseSession

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    summary="Dashboard counters",
    description="Room, booking, guest and revenue counters. Any operator of the hotel.",
)
async def get_stats(auth: TenantOperator, db: DatabaseSession) -> DashboardStatsResponse:
    stats = await dashboard_stats(db)
    return DashboardStatsResponse(
        total_rooms=stats.total_rooms,
        available_rooms=stats.available_rooms,
        occupied_rooms=stats.occupied_rooms,
        occupancy_rate=stats.occupancy_rate,
        today_check_ins=stats.today_check_ins,
        today_check_outs=stats.today_check_outs,
        pending_bookings=stats.pending_bookings,
        total_guests=stats.total_guests,
        total_bookings=stats.total_bookings,
        monthly_revenue=stats.monthly_revenue,
        last_month_revenue=stats.last_month_revenue,
    )
