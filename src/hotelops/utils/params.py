"""Parsing of loosely typed query-string values."""

import re
from datetime import UTC, datetime, time

from hotelops.core.exceptions import ValidationFailedError

DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
MAX_PAGE = 100_000


def clamp(value: int, minimum: int, maximum: int) -> int:
    return min(max(value, minimum), maximum)


def parse_int(raw: str | int | None, default: int) -> int:
    """Leading integer of a query value (``"10d"`` gives 10, ``"3.5"`` gives 3).

    Missing input, or input that does not start with a digit, gives ``default``.
    """
    if raw is None or raw == "":
        return default
    if isinstance(raw, int):
        return raw
    match = LEADING_INT_PATTERN.match(str(raw))
    return int(match.group(1)) if match else default


def parse_pagination(
    page: str | int | None,
    limit: str | int | None,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> tuple[int, int]:
    """Clamp page to [1, 100000] and limit to [1, max_limit]."""
    page_value = clamp(parse_int(page, 1) or 1, 1, MAX_PAGE)
    limit_value = clamp(parse_int(limit, default_limit) or default_limit, 1, max_limit)
    return page_value, limit_value


def parse_date_value(raw: str | None, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO date or datetime into an aware UTC datetime.

    Date-only values cover the whole day: the start of the day, or its last
    millisecond when ``end_of_day`` is set.

    Raises:
        ValidationFailedError: If ``raw`` is present but unparseable
    """
    if not raw:
        return None
    try:
        if DATE_ONLY_PATTERN.match(raw):
            day = datetime.strptime(raw, "%Y-%m-%d").date()
            bound = time(23, 59, 59, 999000) if end_of_day else time(0, 0)
            return datetime.combine(day, bound, tzinfo=UTC)
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationFailedError(f"Invalid date filter: {raw}", field="date") from exc
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_date_range(
    raw_from: str | None, raw_to: str | None
) -> tuple[datetime | None, datetime | None]:
    """Parse a ``from``/``to`` pair; ``from`` after ``to`` is rejected."""
    start = parse_date_value(raw_from)
    end = parse_date_value(raw_to, end_of_day=True)
    if start and end and start > end:
        raise ValidationFailedError("Invalid date range", field="from")
    return start, end
