"""Integration tests for automatic tenant scoping of ORM statements."""

import asyncio

import pytest
from sqlalchemy import delete, func, not_, select, update
from sqlalchemy.orm import aliased
from structlog.testing import capture_logs

from hotelops.core.context import run_with_tenant, tenant_scope
from hotelops.db.models import Guest, Room
from hotelops.db.tenant_isolation import SKIP_TENANT_SCOPE


@pytest.fixture
async def two_hotels(seed):
    """Two hotels with two rooms each and one guest in the first."""
    first = await seed.hotel("First Hotel")
    second = await seed.hotel("Second Hotel")
    rooms = {
        first.id: [await seed.room(first, "101"), await seed.room(first, "102", floor=1)],
        second.id: [await seed.room(second, "101"), await seed.room(second, "201", floor=2)],
    }
    await seed.guest(first)
    return first, second, rooms


@pytest.mark.asyncio
class TestSelectScoping:
    async def test_select_limited_to_context_hotel(self, session_factory, two_hotels):
        first, second, rooms = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                result = await session.execute(select(Room))
                found = {room.id for room in result.scalars()}

        assert found == {room.id for room in rooms[first.id]}

    async def test_get_by_id_from_other_hotel_is_none(self, session_factory, two_hotels):
        first, second, rooms = two_hotels
        foreign_id = rooms[second.id][0].id

        async with session_factory() as session:
            with tenant_scope(first.id):
                assert await session.get(Room, foreign_id) is None

    async def test_counts_and_columns_are_scoped(self, session_factory, two_hotels):
        first, second, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(second.id):
                count = (
                    await session.execute(select(func.count()).select_from(Room))
                ).scalar_one()
                numbers = set((await session.execute(select(Room.room_number))).scalars())
                guests = (
                    await session.execute(select(func.count()).select_from(Guest))
                ).scalar_one()

        assert count == 2
        assert numbers == {"101", "201"}
        assert guests == 0

    async def test_grouped_aggregate_is_scoped(self, session_factory, two_hotels):
        first, _, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                rows = (
                    await session.execute(
                        select(Room.floor, func.count()).group_by(Room.floor)
                    )
                ).all()

        assert [(floor, int(count)) for floor, count in rows] == [(1, 2)]

    async def test_no_context_is_unscoped(self, session_factory, two_hotels):
        async with session_factory() as session:
            count = (await session.execute(select(func.count()).select_from(Room))).scalar_one()
        assert count == 4

    async def test_skip_option_bypasses_scope(self, session_factory, two_hotels):
        first, _, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                result = await session.execute(
                    select(Room).execution_options(**{SKIP_TENANT_SCOPE: True})
                )
                assert len(result.scalars().all()) == 4


@pytest.mark.asyncio
class TestExplicitFilter:
    async def test_explicit_filter_is_not_overridden(self, session_factory, two_hotels):
        first, second, rooms = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                result = await session.execute(select(Room).where(Room.hotel_id == second.id))
                found = {room.id for room in result.scalars()}

        assert found == {room.id for room in rooms[second.id]}

    async def test_mismatch_is_logged(self, session_factory, two_hotels):
        first, second, _ = two_hotels

        with capture_logs() as logs:
            async with session_factory() as session:
                with tenant_scope(first.id):
                    await session.execute(select(Room).where(Room.hotel_id == second.id))

        mismatches = [log for log in logs if log["event"] == "tenant_filter_mismatch"]
        assert len(mismatches) == 1
        assert mismatches[0]["log_level"] == "warning"
        assert mismatches[0]["context_hotel_id"] == str(first.id)
        assert mismatches[0]["filter_hotel_ids"] == [str(second.id)]

    async def test_matching_filter_is_silent(self, session_factory, two_hotels):
        first, _, _ = two_hotels

        with capture_logs() as logs:
            async with session_factory() as session:
                with tenant_scope(first.id):
                    await session.execute(select(Room).where(Room.hotel_id == first.id))

        assert not [log for log in logs if log["event"] == "tenant_filter_mismatch"]

    @pytest.mark.parametrize(
        "condition",
        [
            lambda second: Room.hotel_id.is_not(None),
            lambda second: Room.hotel_id != second.id,
            lambda second: not_(Room.hotel_id == second.id),
        ],
        ids=["is_not_null", "not_equal", "negated_equality"],
    )
    async def test_conditions_naming_no_hotel_are_still_scoped(
        self, session_factory, two_hotels, condition
    ):
        first, second, rooms = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                result = await session.execute(select(Room).where(condition(second)))
                found = {room.id for room in result.scalars()}

        assert found == {room.id for room in rooms[first.id]}

    async def test_hotel_column_comparison_is_still_scoped(self, session_factory, two_hotels):
        first, second, _ = two_hotels
        other = aliased(Room)

        async with session_factory() as session:
            with tenant_scope(second.id):
                rows = (
                    await session.execute(
                        select(Room.room_number, other.room_number).where(
                            other.hotel_id == Room.hotel_id
                        )
                    )
                ).all()

        assert set(rows) == {
            ("101", "101"),
            ("101", "201"),
            ("201", "101"),
            ("201", "201"),
        }

    async def test_bulk_update_with_inequality_stays_in_context_hotel(
        self, session_factory, two_hotels
    ):
        first, second, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                await session.execute(
                    update(Room)
                    .where(Room.hotel_id != first.id)
                    .values(status="maintenance")
                    .execution_options(synchronize_session=False)
                )
                await session.commit()

        async with session_factory() as session:
            statuses = set((await session.execute(select(Room.status))).scalars())

        assert statuses == {"available"}


@pytest.mark.asyncio
class TestWriteScoping:
    async def test_bulk_update_only_touches_context_hotel(self, session_factory, two_hotels):
        first, second, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(first.id):
                await session.execute(
                    update(Room)
                    .values(status="cleaning")
                    .execution_options(synchronize_session=False)
                )
                await session.commit()

        async with session_factory() as session:
            statuses = dict(
                (
                    await session.execute(
                        select(Room.hotel_id, Room.status).group_by(Room.hotel_id, Room.status)
                    )
                ).all()
            )

        assert statuses == {first.id: "cleaning", second.id: "available"}

    async def test_bulk_delete_only_touches_context_hotel(self, session_factory, two_hotels):
        first, second, _ = two_hotels

        async with session_factory() as session:
            with tenant_scope(second.id):
                await session.execute(
                    delete(Room)
                    .where(Room.floor == 1)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()

        async with session_factory() as session:
            remaining = set(
                (await session.execute(select(Room.hotel_id, Room.room_number))).all()
            )

        assert remaining == {(first.id, "101"), (first.id, "102"), (second.id, "201")}


@pytest.mark.asyncio
class TestConcurrentRequests:
    async def test_interleaved_chains_never_see_other_hotels(self, session_factory, two_hotels):
        first, second, rooms = two_hotels
        expected = {
            hotel_id: {room.id for room in hotel_rooms} for hotel_id, hotel_rooms in rooms.items()
        }

        async def request_chain() -> list[set]:
            seen = []
            async with session_factory() as session:
                for _ in range(5):
                    await asyncio.sleep(0)
                    result = await session.execute(select(Room.id))
                    seen.append(set(result.scalars()))
            return seen

        hotel_ids = [first.id, second.id] * 5
        results = await asyncio.gather(
            *(run_with_tenant(hotel_id, request_chain) for hotel_id in hotel_ids)
        )

        for hotel_id, seen in zip(hotel_ids, results, strict=True):
            assert all(ids == expected[hotel_id] for ids in seen)
