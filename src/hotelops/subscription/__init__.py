"""Subscription lifecycle: timing policy, maintenance and expiry alerts."""

from .alerts import (
    UNKNOWN_OWNER,
    AlertItem,
    AlertReport,
    AlertSeverity,
    AlertSummary,
    classify_severity,
    get_alerts,
    parse_window_days,
)
from .maintenance import MaintenanceResult, run_maintenance, run_maintenance_job
from .policy import (
    SUBSCRIPTION_RENEWAL_DAYS,
    add_days,
    compute_renewal_end_date,
    days_remaining,
    is_subscription_expired,
)

__all__ = [
    "SUBSCRIPTION_RENEWAL_DAYS",
    "add_days",
    "compute_renewal_end_date",
    "days_remaining",
    "is_subscription_expired",
    "MaintenanceResult",
    "run_maintenance",
    "run_maintenance_job",
    "UNKNOWN_OWNER",
    "AlertItem",
    "AlertReport",
    "AlertSeverity",
    "AlertSummary",
    "classify_severity",
    "get_alerts",
    "parse_window_days",
]
