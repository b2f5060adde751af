"""Finance reports for the current hotel.

- GET /finance/overview      - Month revenue, balances, payment status counts
- GET /finance/transactions  - Bookings with their payment position
- GET /finance/trends        - Monthly revenue series
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from hotelops.api.dependencies import require_permission
from hotelops.api.schemas.common import Pagination
from hotelops.api.schemas.tenant import (
    FinanceOverviewResponse,
    FinanceSummary,
    FinanceTransactionListResponse,
    FinanceTransactionResponse,
    FinanceTransactionSummary,
    FinanceTrendsResponse,
    MonthlyTrendResponse,
    RecentPaymentResponse,
)
from hotelops.core.auth import AuthContext
from hotelops.core.finance import (
    DEFAULT_TREND_MONTHS,
    finance_overview,
    finance_transactions,
    finance_trends,
)
from hotelops.core.permissions import Permission
from hotelops.db.dependencies import DatabaseSession
from hotelops.utils.params import parse_date_range, parse_int, parse_pagination

router = APIRouter(prefix="/finance", tags=["finance"])

ReportViewer = Annotated[AuthContext, Depends(require_permission(Permission.REPORT_VIEW))]

TRANSACTIONS_DEFAULT_LIMIT = 10
TRANSACTIONS_MAX_LIMIT = 50


@router.get("/overview", response_model=FinanceOverviewResponse, summary="Finance overview")
async def get_overview(auth: ReportViewer, db: DatabaseSession) -> FinanceOverviewResponse:
    overview = await finance_overview(db)
    counts = overview.payment_status_counts
    return FinanceOverviewResponse(
        summary=FinanceSummary(
            month_revenue=overview.month_revenue,
            last_month_revenue=overview.last_month_revenue,
            month_paid=overview.month_paid,
            outstanding_balance=overview.outstanding_balance,
            total_bookings=overview.total_bookings,
            paid_bookings=counts["paid"],
            partial_bookings=counts["partial"],
            pending_bookings=counts["pending"],
            refunded_bookings=counts["refunded"],
        ),
        recent_payments=[
            RecentPaymentResponse.model_validate(payment) for payment in overview.recent_payments
        ],
    )


@router.get(
    "/transactions",
    response_model=FinanceTransactionListResponse,
    summary="Payment transactions",
    description="Date filters apply to booking creation; `toDate` covers the whole day.",
)
async def list_transactions(
    auth: ReportViewer,
    db: DatabaseSession,
    payment_status: Annotated[str | None, Query(alias="status")] = None,
    method: str | None = None,
    from_date: Annotated[str | None, Query(alias="fromDate")] = None,
    to_date: Annotated[str | None, Query(alias="toDate")] = None,
    page: str | None = None,
    limit: str | None = None,
) -> FinanceTransactionListResponse:
    page_number, page_size = parse_pagination(
        page, limit, default_limit=TRANSACTIONS_DEFAULT_LIMIT, max_limit=TRANSACTIONS_MAX_LIMIT
    )
    created_from, created_to = parse_date_range(from_date, to_date)

    result = await finance_transactions(
        db,
        page=page_number,
        limit=page_size,
        payment_status=payment_status,
        method=method,
        created_from=created_from,
        created_to=created_to,
    )
    return FinanceTransactionListResponse(
        data=[FinanceTransactionResponse.model_validate(row) for row in result.rows],
        summary=FinanceTransactionSummary(
            total_amount=result.total_amount,
            total_paid=result.total_paid,
            total_outstanding=result.total_outstanding,
            count=result.total,
        ),
        pagination=Pagination.build(page_number, page_size, result.total),
    )


@router.get(
    "/trends",
    response_model=FinanceTrendsResponse,
    summary="Monthly revenue trends",
    description="The last `months` calendar months (3 to 24, default 6), oldest first.",
)
async def get_trends(
    auth: ReportViewer,
    db: DatabaseSession,
    months: str | None = None,
) -> FinanceTrendsResponse:
    trends = await finance_trends(db, parse_int(months, DEFAULT_TREND_MONTHS))
    return FinanceTrendsResponse(
        data=[MonthlyTrendResponse.model_validate(trend) for trend in trends]
    )
