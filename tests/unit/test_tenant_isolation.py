"""Unit tests for tenant isolation helpers."""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import and_, not_, or_, select

from hotelops.core.exceptions import ResourceNotFoundError
from hotelops.db.models import Booking, Room
from hotelops.db.tenant_isolation import (
    TenantQuery,
    assert_tenant_access,
    has_tenant_condition,
    sanitize_filters,
    scoped_filter,
    tenant_values_in,
    validate_tenant_access,
)


class TestHasTenantCondition:
    def test_none_clause(self):
        assert has_tenant_condition(None) is False

    def test_plain_equality(self):
        assert has_tenant_condition(Room.hotel_id == uuid4()) is True

    def test_other_column_only(self):
        assert has_tenant_condition(Room.status == "available") is False

    def test_nested_groupings(self):
        clause = and_(
            Room.floor == 2,
            or_(Room.status == "available", Room.hotel_id == uuid4()),
        )
        assert has_tenant_condition(clause) is True

    def test_negated_equality_names_no_hotel(self):
        assert has_tenant_condition(not_(Room.hotel_id == uuid4())) is False
        assert has_tenant_condition(Room.hotel_id != uuid4()) is False

    def test_null_check_names_no_hotel(self):
        assert has_tenant_condition(Room.hotel_id.is_not(None)) is False
        assert has_tenant_condition(and_(Room.floor == 1, Room.hotel_id.is_(None))) is False

    def test_column_comparison_names_no_hotel(self):
        assert has_tenant_condition(Room.hotel_id == Booking.hotel_id) is False

    def test_membership_in_subquery_names_no_hotel(self):
        subquery = select(Booking.hotel_id).where(Booking.status == "pending")
        assert has_tenant_condition(Room.hotel_id.in_(subquery)) is False

    def test_deep_nesting_without_tenant(self):
        clause = and_(Room.floor == 2, or_(Room.status == "a", not_(Room.type == "suite")))
        assert has_tenant_condition(clause) is False

    def test_membership(self):
        assert has_tenant_condition(Room.hotel_id.in_([uuid4(), uuid4()])) is True

    def test_condition_inside_subquery_does_not_count(self):
        subquery = select(Booking.room_id).where(Booking.hotel_id == uuid4())
        assert has_tenant_condition(Room.id.in_(subquery)) is False

    def test_statement_whereclause(self):
        statement = select(Room).where(Room.floor == 1, Room.hotel_id == uuid4())
        assert has_tenant_condition(statement.whereclause) is True


class TestTenantValuesIn:
    def test_equality_value(self):
        hotel_id = uuid4()
        assert tenant_values_in(Room.hotel_id == hotel_id) == {hotel_id}

    def test_membership_values(self):
        first, second = uuid4(), uuid4()
        assert tenant_values_in(Room.hotel_id.in_([first, second])) == {first, second}

    def test_values_collected_across_groupings(self):
        first, second = uuid4(), uuid4()
        clause = or_(Room.hotel_id == first, and_(Room.floor == 1, Room.hotel_id == second))
        assert tenant_values_in(clause) == {first, second}

    def test_no_values(self):
        assert tenant_values_in(Room.status == "available") == set()

    def test_non_literal_comparisons_carry_no_values(self):
        clause = and_(Room.hotel_id.is_not(None), Room.hotel_id != uuid4())
        assert tenant_values_in(clause) == set()


class TestExplicitHelpers:
    def test_tenant_query_select_carries_hotel(self):
        hotel_id = uuid4()
        statement = TenantQuery(str(hotel_id)).select(Room, Room.status == "available")
        assert tenant_values_in(statement.whereclause) == {hotel_id}

    def test_scoped_filter_prepends_hotel(self):
        hotel_id = uuid4()
        criteria = scoped_filter(hotel_id, Room, Room.floor == 3)
        assert len(criteria) == 2
        assert has_tenant_condition(criteria[0]) is True

    def test_validate_tenant_access(self):
        hotel_id = uuid4()
        document = SimpleNamespace(hotel_id=hotel_id)
        assert validate_tenant_access(document, hotel_id) is True
        assert validate_tenant_access(document, str(hotel_id)) is True
        assert validate_tenant_access(document, uuid4()) is False
        assert validate_tenant_access(document, "bad-id") is False
        assert validate_tenant_access(None, hotel_id) is False
        assert validate_tenant_access(document, None) is False

    def test_assert_tenant_access_hides_foreign_documents(self):
        hotel_id = uuid4()
        own = SimpleNamespace(hotel_id=hotel_id)
        foreign = SimpleNamespace(hotel_id=uuid4())

        assert assert_tenant_access(own, hotel_id, "Room") is own
        with pytest.raises(ResourceNotFoundError) as missing:
            assert_tenant_access(None, hotel_id, "Room")
        with pytest.raises(ResourceNotFoundError) as hidden:
            assert_tenant_access(foreign, hotel_id, "Room")
        assert str(missing.value) == str(hidden.value)

    def test_sanitize_filters_drops_tenant_keys(self):
        params = {
            "status": "available",
            "hotel_id": str(uuid4()),
            "hotelId": str(uuid4()),
            "floor": "",
            "type": None,
            "unknown": "x",
        }
        allowed = ["status", "floor", "type", "hotel_id", "hotelId"]
        assert sanitize_filters(params, allowed) == {"status": "available"}
