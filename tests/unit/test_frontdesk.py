"""Unit tests for booking pricing and numbering helpers."""

import re
from datetime import UTC, datetime, time, timedelta
from decimal import Decimal

import pytest

from hotelops.core.exceptions import ValidationFailedError
from hotelops.core.frontdesk import (
    DashboardStats,
    booking_number,
    month_start,
    parse_clock,
    stay_pricing,
)

CHECK_IN = datetime(2026, 6, 1, 14, 0, tzinfo=UTC)


class TestParseClock:
    def test_valid(self):
        assert parse_clock("15:30", "14:00") == time(15, 30)

    @pytest.mark.parametrize("value", [None, "", "noon", "25:00", "14"])
    def test_falls_back_to_default(self, value):
        assert parse_clock(value, "14:00") == time(14, 0)


class TestStayPricing:
    def test_whole_nights_with_tax(self):
        check_out = datetime(2026, 6, 4, 12, 0, tzinfo=UTC)
        nights, total = stay_pricing(Decimal("100.00"), CHECK_IN, check_out, 15)

        # 14:00 to 12:00 three days later is 2 days 22 hours, billed as 3 nights
        assert nights == 3
        assert total == Decimal("345.00")

    def test_zero_tax(self):
        check_out = CHECK_IN + timedelta(days=1)
        assert stay_pricing(Decimal("99.99"), CHECK_IN, check_out, 0) == (1, Decimal("99.99"))

    def test_rounding_half_up(self):
        check_out = CHECK_IN + timedelta(days=1)
        _, total = stay_pricing(Decimal("10.05"), CHECK_IN, check_out, 5)
        assert total == Decimal("10.55")

    def test_same_instant_rejected(self):
        with pytest.raises(ValidationFailedError):
            stay_pricing(Decimal("100"), CHECK_IN, CHECK_IN, 15)


class TestBookingNumber:
    def test_format(self):
        number = booking_number(datetime(2026, 7, 9, tzinfo=UTC))
        assert re.fullmatch(r"BK2607\d{4}", number)


class TestDashboardStats:
    def _stats(self, total: int, occupied: int) -> DashboardStats:
        return DashboardStats(
            total_rooms=total,
            available_rooms=total - occupied,
            occupied_rooms=occupied,
            today_check_ins=0,
            today_check_outs=0,
            pending_bookings=0,
            total_guests=0,
            total_bookings=0,
            monthly_revenue=Decimal("0"),
            last_month_revenue=Decimal("0"),
        )

    def test_occupancy_rate(self):
        assert self._stats(3, 1).occupancy_rate == 33.3

    def test_occupancy_without_rooms(self):
        assert self._stats(0, 0).occupancy_rate == 0.0

    @pytest.mark.parametrize(
        ("offset", "expected"),
        [(0, datetime(2026, 1, 1, tzinfo=UTC)), (-1, datetime(2025, 12, 1, tzinfo=UTC)),
         (1, datetime(2026, 2, 1, tzinfo=UTC))],
    )
    def test_month_start(self, offset, expected):
        assert month_start(datetime(2026, 1, 17, 8, 45, tzinfo=UTC), offset) == expected
