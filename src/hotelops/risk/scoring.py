"""Risk scoring for delegated platform operators.

Turns the aggregated audit trail of one operator into a composite score,
a level and the list of conditions that contributed to it. The scorer is
pure: identical inputs always produce identical output, and the order in
which conditions are evaluated does not affect the result.

Scoring table:

    unverified account                  +30
    actions in last 24h  >= 80          +35   (very_high_24h_activity)
                         >= 40          +25   (high_24h_activity)
                         >= 20          +12   (elevated_24h_activity)
    sensitive actions    >= 8           +30   (many_sensitive_actions)
                         >= 4           +18   (sensitive_actions)
                         >  0           +8    (few_sensitive_actions)
    inactive account                    +8
    account < 7 days old, > 20 in 24h   +10
    no recorded activity                +6
    last activity > 45 days ago         +6

Level: score >= 70 is high, >= 35 is medium, otherwise low.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from hotelops.subscription.policy import as_utc, utc_now

SENSITIVE_ACTION_PATTERN = re.compile(
    r"(delete|verify|role|permission|suspend|deactivate|reactivate)", re.IGNORECASE
)

NEW_ACCOUNT_AGE = timedelta(days=7)
STALE_ACTIVITY_AGE = timedelta(days=45)

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 35

# (minimum count, weight, flag), highest threshold first
ACTIVITY_24H_TIERS: tuple[tuple[int, int, str], ...] = (
    (80, 35, "very_high_24h_activity"),
    (40, 25, "high_24h_activity"),
    (20, 12, "elevated_24h_activity"),
)
SENSITIVE_ACTION_TIERS: tuple[tuple[int, int, str], ...] = (
    (8, 30, "many_sensitive_actions"),
    (4, 18, "sensitive_actions"),
    (1, 8, "few_sensitive_actions"),
)


class RiskLevel(str, Enum):
    """Risk level classification."""

    LOW = "low"  # 0-34
    MEDIUM = "medium"  # 35-69
    HIGH = "high"  # 70+


def is_sensitive_action(action: str) -> bool:
    """True for actions that change access or status of accounts and hotels."""
    return bool(SENSITIVE_ACTION_PATTERN.search(action or ""))


@dataclass
class OperatorStats:
    """Audit aggregates for one operator.

    Attributes:
        hotels_created: Hotels provisioned by the operator
        accounts_created: Non-platform accounts created by the operator
        operations_count: All audit records with the operator as actor
        operations_in_range: Records inside the requested date range
        operations_24h: Records in the 24 hours before scoring
        suspicious_operations: Records whose action is sensitive
        last_activity_at: Timestamp of the newest record, if any
    """

    hotels_created: int = 0
    accounts_created: int = 0
    operations_count: int = 0
    operations_in_range: int = 0
    operations_24h: int = 0
    suspicious_operations: int = 0
    last_activity_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hotels_created": self.hotels_created,
            "accounts_created": self.accounts_created,
            "operations_count": self.operations_count,
            "operations_in_range": self.operations_in_range,
            "operations_24h": self.operations_24h,
            "suspicious_operations": self.suspicious_operations,
            "last_activity_at": (
                self.last_activity_at.isoformat() if self.last_activity_at else None
            ),
        }


@dataclass
class RiskSummary:
    """Composite risk signal for one operator."""

    score: int = 0
    level: RiskLevel = RiskLevel.LOW
    flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "flags": list(self.flags),
        }


def classify_risk_level(score: int) -> RiskLevel:
    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _tier(count: int, tiers: tuple[tuple[int, int, str], ...]) -> tuple[int, str] | None:
    for minimum, weight, flag in tiers:
        if count >= minimum:
            return weight, flag
    return None


def score_risk(
    is_active: bool,
    is_verified: bool,
    created_at: datetime | None,
    stats: OperatorStats,
    now: datetime | None = None,
) -> RiskSummary:
    """Score one operator.

    Args:
        is_active: Whether the operator account is active
        is_verified: Whether the account has been verified by the main admin
        created_at: Account creation time; None skips the new-account rule
        stats: Audit aggregates for the operator
        now: Reference instant (default: current UTC time)

    Returns:
        RiskSummary with the score, level and triggered flags
    """
    now = as_utc(now) if now is not None else utc_now()
    score = 0
    flags: list[str] = []

    def add(weight: int, flag: str) -> None:
        nonlocal score
        score += weight
        flags.append(flag)

    if not is_verified:
        add(30, "unverified_account")

    activity = _tier(stats.operations_24h, ACTIVITY_24H_TIERS)
    if activity:
        add(*activity)

    sensitive = _tier(stats.suspicious_operations, SENSITIVE_ACTION_TIERS)
    if sensitive:
        add(*sensitive)

    if not is_active:
        add(8, "inactive_account")

    if (
        created_at is not None
        and now - as_utc(created_at) < NEW_ACCOUNT_AGE
        and stats.operations_24h > 20
    ):
        add(10, "new_account_high_activity")

    if stats.last_activity_at is None:
        add(6, "no_recorded_activity")
    elif now - as_utc(stats.last_activity_at) > STALE_ACTIVITY_AGE:
        add(6, "stale_activity")

    return RiskSummary(score=score, level=classify_risk_level(score), flags=flags)
