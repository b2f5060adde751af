"""Subscription timing rules.

All functions are pure. Instants are UTC-aware datetimes throughout; a
naive datetime is interpreted as UTC. Because nothing here observes local
time, a day is always exactly 24 hours and daylight-saving transitions
cannot shift results.
"""

import math
from datetime import UTC, datetime, timedelta

SUBSCRIPTION_RENEWAL_DAYS = 30

DAY = timedelta(days=1)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def add_days(date: datetime, days: int) -> datetime:
    """Return the instant ``days`` calendar days after ``date``.

    Month and year rollover come from datetime arithmetic.
    """
    return as_utc(date) + timedelta(days=days)


def is_subscription_expired(end_date: datetime | None, now: datetime | None = None) -> bool:
    """True iff ``end_date`` is set and strictly before ``now``.

    A missing end date (unlimited or trial) never expires.
    """
    if end_date is None:
        return False
    now = as_utc(now) if now is not None else utc_now()
    return as_utc(end_date) < now


def compute_renewal_end_date(
    current_end_date: datetime | None,
    payment_date: datetime,
    renewal_days: int = SUBSCRIPTION_RENEWAL_DAYS,
) -> datetime:
    """End date after a payment.

    Time still remaining on the current window is kept: the renewal extends
    from the current end date when that lies after the payment date,
    otherwise from the payment date.
    """
    payment_date = as_utc(payment_date)
    base = payment_date
    if current_end_date is not None and as_utc(current_end_date) > payment_date:
        base = as_utc(current_end_date)
    return add_days(base, renewal_days)


def days_remaining(end_date: datetime, now: datetime | None = None) -> int:
    """Whole days until ``end_date``, rounded up; negative once past."""
    now = as_utc(now) if now is not None else utc_now()
    return math.ceil((as_utc(end_date) - now) / DAY)
