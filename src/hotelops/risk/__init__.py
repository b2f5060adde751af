"""Operator risk scoring and monitoring."""

from .monitoring import MonitoringQuery, SubAdminMonitor
from .scoring import (
    SENSITIVE_ACTION_PATTERN,
    OperatorStats,
    RiskLevel,
    RiskSummary,
    classify_risk_level,
    is_sensitive_action,
    score_risk,
)

__all__ = [
    "SENSITIVE_ACTION_PATTERN",
    "MonitoringQuery",
    "OperatorStats",
    "RiskLevel",
    "RiskSummary",
    "SubAdminMonitor",
    "classify_risk_level",
    "is_sensitive_action",
    "score_risk",
]
