"""Integration tests for subscription maintenance, alerts and tenant dashboards."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select
from structlog.testing import capture_logs

from hotelops.core.audit import AuditFilter, AuditLogger
from hotelops.core.auth import AuthContext, OwnershipScope
from hotelops.core.context import tenant_scope
from hotelops.core.exceptions import MissingTenantContextError
from hotelops.core.frontdesk import dashboard_stats
from hotelops.core.permissions import Role
from hotelops.db.models import Booking, Hotel
from hotelops.subscription.alerts import AlertSeverity, get_alerts
from hotelops.subscription.maintenance import run_maintenance, run_maintenance_job

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def actor_for(user) -> AuthContext:
    return AuthContext(user_id=user.id, role=user.role, is_verified=user.is_verified)


async def load_hotel(session_factory, hotel_id) -> Hotel:
    async with session_factory() as session:
        return (await session.execute(select(Hotel).where(Hotel.id == hotel_id))).scalar_one()


@pytest.mark.asyncio
class TestMaintenance:
    async def test_suspends_expired_hotels_only(self, session_factory, seed):
        expired = await seed.hotel("Expired", end_date=NOW - timedelta(days=1))
        current = await seed.hotel("Current", end_date=NOW + timedelta(days=5))
        cancelled = await seed.hotel(
            "Cancelled", end_date=NOW - timedelta(days=3), status="cancelled"
        )
        unlimited = await seed.hotel("Unlimited", unlimited=True)

        async with session_factory() as session:
            result = await run_maintenance(session, now=NOW)

        assert result.updated_count == 1
        assert result.affected_ids == [expired.id]

        converged = await load_hotel(session_factory, expired.id)
        assert converged.subscription_status == "suspended"
        assert converged.is_active is False

        for untouched in (current, cancelled, unlimited):
            hotel = await load_hotel(session_factory, untouched.id)
            assert hotel.subscription_status == untouched.subscription_status
            assert hotel.is_active is True

    async def test_suspended_but_active_hotel_is_converged(self, session_factory, seed):
        hotel = await seed.hotel(
            "Half Suspended", end_date=NOW - timedelta(days=2), status="suspended"
        )

        async with session_factory() as session:
            result = await run_maintenance(session, now=NOW)

        assert result.affected_ids == [hotel.id]
        assert (await load_hotel(session_factory, hotel.id)).is_active is False

    async def test_second_run_is_a_no_op(self, session_factory, seed):
        await seed.hotel("Expired A", end_date=NOW - timedelta(days=1))
        await seed.hotel("Expired B", end_date=NOW - timedelta(minutes=1))

        async with session_factory() as session:
            first = await run_maintenance(session, now=NOW)
        async with session_factory() as session:
            second = await run_maintenance(session, now=NOW)

        assert first.updated_count == 2
        assert second.updated_count == 0
        assert second.affected_ids == []

    async def test_scope_limits_sub_admin_to_own_hotels(self, session_factory, seed, sub_admin):
        own = await seed.hotel("Own", created_by=sub_admin.id, end_date=NOW - timedelta(days=1))
        other = await seed.hotel("Other", end_date=NOW - timedelta(days=1))

        async with session_factory() as session:
            result = await run_maintenance(
                session, OwnershipScope.for_actor(actor_for(sub_admin)), now=NOW
            )

        assert result.affected_ids == [own.id]
        assert (await load_hotel(session_factory, other.id)).subscription_status == "active"

    async def test_writes_one_audit_record_per_run(self, session_factory, seed, super_admin):
        first = await seed.hotel("Expired A", end_date=NOW - timedelta(days=1))
        second = await seed.hotel("Expired B", end_date=NOW - timedelta(days=4))
        audit = AuditLogger(session_factory)

        async with session_factory() as session:
            await run_maintenance(
                session, audit=audit, actor=actor_for(super_admin), now=NOW
            )
        async with session_factory() as session:
            await run_maintenance(
                session, audit=audit, actor=actor_for(super_admin), now=NOW
            )

        records, total = await audit.query(AuditFilter(action="subscription.maintenance"))
        assert total == 1
        assert records[0].actor_id == super_admin.id
        assert records[0].details["updated_hotels_count"] == 2
        assert sorted(records[0].details["updated_hotel_ids"]) == sorted(
            [str(first.id), str(second.id)]
        )

    async def test_audit_failure_does_not_fail_maintenance(self, session_factory, seed, super_admin):
        hotel = await seed.hotel("Expired", end_date=NOW - timedelta(days=1))

        def broken_factory():
            raise RuntimeError("audit store unavailable")

        audit = AuditLogger(broken_factory)

        with capture_logs() as logs:
            async with session_factory() as session:
                result = await run_maintenance(
                    session, audit=audit, actor=actor_for(super_admin), now=NOW
                )

        assert result.affected_ids == [hotel.id]
        assert any(log["event"] == "audit_write_failed" for log in logs)

    async def test_scheduled_job(self, session_factory, seed):
        hotel = await seed.hotel("Expired", end_date=NOW - timedelta(hours=1))

        result = await run_maintenance_job(session_factory, now=NOW)

        assert result.affected_ids == [hotel.id]


@pytest.mark.asyncio
class TestAlerts:
    @pytest.fixture
    async def alert_hotels(self, seed):
        hotels = {
            "expired": await seed.hotel("Lapsed Inn", end_date=NOW - timedelta(days=2)),
            "critical": await seed.hotel("Tomorrow Hotel", end_date=NOW + timedelta(hours=12)),
            "warning": await seed.hotel("Soon Suites", end_date=NOW + timedelta(days=3)),
            "info": await seed.hotel("Week Lodge", end_date=NOW + timedelta(days=6)),
            "outside": await seed.hotel("Later Resort", end_date=NOW + timedelta(days=20)),
            "unlimited": await seed.hotel("Forever Palace", unlimited=True),
        }
        return hotels

    async def test_items_sorted_by_urgency_with_counts(self, session_factory, alert_hotels):
        async with session_factory() as session:
            report = await get_alerts(session, window_days=7, now=NOW)

        assert [item.days_remaining for item in report.items] == [-2, 1, 3, 6]
        assert [item.severity for item in report.items] == [
            AlertSeverity.EXPIRED,
            AlertSeverity.CRITICAL,
            AlertSeverity.WARNING,
            AlertSeverity.INFO,
        ]
        summary = report.summary
        assert (summary.total_alerts, summary.expired, summary.critical) == (4, 1, 1)
        assert (summary.warning, summary.info, summary.window_days) == (1, 1, 7)
        assert summary.maintenance.affected_ids == [alert_hotels["expired"].id]

    async def test_expired_item_reflects_maintenance(self, session_factory, alert_hotels):
        async with session_factory() as session:
            report = await get_alerts(session, now=NOW)

        expired = report.items[0]
        assert expired.hotel_id == alert_hotels["expired"].id
        assert expired.subscription_status == "suspended"
        assert expired.is_active is False

    async def test_without_maintenance(self, session_factory, alert_hotels):
        async with session_factory() as session:
            report = await get_alerts(session, now=NOW, run_maintenance_first=False)

        assert report.summary.maintenance.updated_count == 0
        assert report.items[0].subscription_status == "active"

    async def test_window_is_clamped(self, session_factory, alert_hotels):
        async with session_factory() as session:
            wide = await get_alerts(session, window_days=90, now=NOW)
        async with session_factory() as session:
            narrow = await get_alerts(session, window_days=0, now=NOW)

        assert wide.summary.window_days == 30
        assert wide.summary.total_alerts == 5
        assert narrow.summary.window_days == 1
        assert narrow.summary.total_alerts == 2

    async def test_configured_maximum_window(self, session_factory, alert_hotels):
        async with session_factory() as session:
            report = await get_alerts(session, window_days=30, now=NOW, max_window_days=10)
        assert report.summary.window_days == 10

    async def test_owner_is_earliest_hotel_admin(self, session_factory, seed, alert_hotels):
        hotel = alert_hotels["warning"]
        first = await seed.user(
            Role.ADMIN, hotel=hotel, name="First Owner", created_at=NOW - timedelta(days=30)
        )
        await seed.user(Role.ADMIN, hotel=hotel, name="Second Owner", created_at=NOW)
        await seed.user(
            Role.MANAGER, hotel=hotel, name="Manager", created_at=NOW - timedelta(days=60)
        )

        async with session_factory() as session:
            report = await get_alerts(session, now=NOW)

        by_hotel = {item.hotel_id: item for item in report.items}
        assert by_hotel[hotel.id].owner.id == first.id
        assert by_hotel[hotel.id].owner.name == "First Owner"
        assert by_hotel[alert_hotels["info"].id].owner.to_dict() == {
            "id": None,
            "name": "-",
            "email": "-",
            "phone": "-",
            "is_active": None,
        }

    async def test_sub_admin_sees_own_hotels_only(self, session_factory, seed, sub_admin):
        own = await seed.hotel("Own", created_by=sub_admin.id, end_date=NOW + timedelta(days=2))
        await seed.hotel("Other", end_date=NOW + timedelta(days=2))

        async with session_factory() as session:
            report = await get_alerts(
                session, scope=OwnershipScope.for_actor(actor_for(sub_admin)), now=NOW
            )

        assert [item.hotel_id for item in report.items] == [own.id]


@pytest.mark.asyncio
class TestDashboardStats:
    TODAY = datetime(2026, 4, 15, 10, 0, tzinfo=UTC)

    async def _booking(self, session_factory, hotel, room, guest, check_in, check_out, status, total):
        async with session_factory() as session:
            session.add(
                Booking(
                    hotel_id=hotel.id,
                    booking_number=f"BK{uuid4().hex[:8]}",
                    room_id=room.id,
                    guest_id=guest.id,
                    check_in_date=check_in,
                    check_out_date=check_out,
                    status=status,
                    total_amount=Decimal(total),
                )
            )
            await session.commit()

    async def test_counters_for_scoped_hotel(self, session_factory, seed):
        hotel = await seed.hotel("Palm")
        other = await seed.hotel("Other")
        room = await seed.room(hotel, "101")
        await seed.room(hotel, "102", status="occupied")
        guest = await seed.guest(hotel)
        other_room = await seed.room(other, "101")
        other_guest = await seed.guest(other)

        day = self.TODAY.replace(hour=0)
        await self._booking(
            session_factory, hotel, room, guest,
            day + timedelta(hours=14), day + timedelta(days=2, hours=12), "pending", "200.00",
        )
        await self._booking(
            session_factory, hotel, room, guest,
            day - timedelta(days=2, hours=-14), day + timedelta(hours=12), "checked_in", "230.00",
        )
        await self._booking(
            session_factory, hotel, room, guest,
            datetime(2026, 3, 10, 14, tzinfo=UTC), datetime(2026, 3, 12, 12, tzinfo=UTC),
            "checked_out", "150.00",
        )
        await self._booking(
            session_factory, hotel, room, guest,
            day + timedelta(hours=14), day + timedelta(days=1, hours=12), "cancelled", "999.00",
        )
        await self._booking(
            session_factory, other, other_room, other_guest,
            day + timedelta(hours=14), day + timedelta(days=1, hours=12), "pending", "500.00",
        )

        async with session_factory() as session:
            with tenant_scope(hotel.id):
                stats = await dashboard_stats(session, now=self.TODAY)

        assert (stats.total_rooms, stats.available_rooms, stats.occupied_rooms) == (2, 1, 1)
        assert stats.occupancy_rate == 50.0
        assert (stats.today_check_ins, stats.today_check_outs) == (1, 1)
        assert stats.pending_bookings == 1
        assert stats.total_guests == 1
        assert stats.total_bookings == 3
        assert stats.monthly_revenue == Decimal("430.00")
        assert stats.last_month_revenue == Decimal("150.00")

    async def test_requires_tenant_context(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(MissingTenantContextError):
                await dashboard_stats(session, now=self.TODAY)
