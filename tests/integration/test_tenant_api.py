"""Tests for hotel-scoped endpoints across two hotels."""

from datetime import timedelta
from uuid import uuid4

import pytest

from hotelops.core.permissions import Role
from hotelops.subscription.policy import utc_now

GUEST_BODY = {
    "first_name": "Sara",
    "last_name": "Ali",
    "phone": "+966511111111",
    "nationality": "SA",
    "id_type": "national_id",
    "id_number": "1029384756",
}


@pytest.fixture
async def palm(seed):
    hotel = await seed.hotel("Palm Hotel")
    return hotel, await seed.user(Role.ADMIN, hotel=hotel)


@pytest.fixture
async def desert(seed):
    hotel = await seed.hotel("Desert Inn")
    return hotel, await seed.user(Role.ADMIN, hotel=hotel)


async def create_room(client, seed, operator, number="101", **extra) -> dict:
    body = {"room_number": number, "floor": 1, "type": "double", "price_per_night": "100.00"}
    response = await client.post("/v1/rooms", json={**body, **extra}, headers=seed.headers(operator))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
class TestRooms:
    async def test_same_number_allowed_in_different_hotels(self, test_client, seed, palm, desert):
        palm_room = await create_room(test_client, seed, palm[1], "101")
        desert_room = await create_room(test_client, seed, desert[1], "101")

        assert palm_room["hotel_id"] == str(palm[0].id)
        assert desert_room["hotel_id"] == str(desert[0].id)

        duplicate = await test_client.post(
            "/v1/rooms",
            json={"room_number": " 101 ", "floor": 2, "type": "single", "price_per_night": "80"},
            headers=seed.headers(palm[1]),
        )
        assert duplicate.status_code == 409

    async def test_listing_is_isolated(self, test_client, seed, palm, desert):
        await create_room(test_client, seed, palm[1], "101")
        await create_room(test_client, seed, palm[1], "201", floor=2, type="suite")
        await create_room(test_client, seed, desert[1], "301", floor=3)

        response = await test_client.get("/v1/rooms", headers=seed.headers(palm[1]))
        suites = await test_client.get("/v1/rooms?type=suite", headers=seed.headers(palm[1]))
        floor = await test_client.get("/v1/rooms?floor=3", headers=seed.headers(palm[1]))

        assert [room["room_number"] for room in response.json()["data"]] == ["101", "201"]
        assert [room["room_number"] for room in suites.json()["data"]] == ["201"]
        assert floor.json()["data"] == []

    async def test_foreign_room_is_not_found(self, test_client, seed, palm, desert):
        foreign = await create_room(test_client, seed, desert[1], "101")
        headers = seed.headers(palm[1])

        read = await test_client.get(f"/v1/rooms/{foreign['id']}", headers=headers)
        update = await test_client.patch(
            f"/v1/rooms/{foreign['id']}", json={"status": "maintenance"}, headers=headers
        )
        remove = await test_client.delete(f"/v1/rooms/{foreign['id']}", headers=headers)

        assert [read.status_code, update.status_code, remove.status_code] == [404, 404, 404]
        own_view = await test_client.get(
            f"/v1/rooms/{foreign['id']}", headers=seed.headers(desert[1])
        )
        assert own_view.json()["status"] == "available"
        assert own_view.json()["is_active"] is True

    async def test_update_and_soft_delete(self, test_client, seed, palm):
        room = await create_room(test_client, seed, palm[1], "101")
        headers = seed.headers(palm[1])

        updated = await test_client.patch(
            f"/v1/rooms/{room['id']}",
            json={"status": "cleaning", "price_per_night": "120.50"},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "cleaning"
        assert updated.json()["price_per_night"] == "120.50"

        removed = await test_client.delete(f"/v1/rooms/{room['id']}", headers=headers)
        assert removed.status_code == 204

        active = await test_client.get("/v1/rooms", headers=headers)
        inactive = await test_client.get("/v1/rooms?status=inactive", headers=headers)
        assert active.json()["data"] == []
        assert [r["id"] for r in inactive.json()["data"]] == [room["id"]]

    async def test_rename_onto_existing_number(self, test_client, seed, palm):
        await create_room(test_client, seed, palm[1], "101")
        other = await create_room(test_client, seed, palm[1], "102")

        response = await test_client.patch(
            f"/v1/rooms/{other['id']}", json={"room_number": "101"}, headers=seed.headers(palm[1])
        )

        assert response.status_code == 409


@pytest.mark.asyncio
class TestGuests:
    async def test_register_and_search(self, test_client, seed, palm, desert):
        created = await test_client.post("/v1/guests", json=GUEST_BODY, headers=seed.headers(palm[1]))
        await test_client.post(
            "/v1/guests",
            json={**GUEST_BODY, "first_name": "Omar", "guest_type": "vip"},
            headers=seed.headers(desert[1]),
        )

        assert created.status_code == 201
        assert created.json()["full_name"] == "Sara Ali"

        own = await test_client.get("/v1/guests?search=sara", headers=seed.headers(palm[1]))
        vip = await test_client.get("/v1/guests?guestType=vip", headers=seed.headers(palm[1]))
        foreign = await test_client.get(
            f"/v1/guests/{created.json()['id']}", headers=seed.headers(desert[1])
        )

        assert own.json()["pagination"]["total"] == 1
        assert vip.json()["data"] == []
        assert foreign.status_code == 404

    async def test_invalid_id_type(self, test_client, seed, palm):
        response = await test_client.post(
            "/v1/guests", json={**GUEST_BODY, "id_type": "library_card"}, headers=seed.headers(palm[1])
        )
        assert response.status_code == 422

    async def test_housekeeping_cannot_register_guests(self, test_client, seed, palm):
        housekeeper = await seed.user(Role.HOUSEKEEPING, hotel=palm[0])

        response = await test_client.post(
            "/v1/guests", json=GUEST_BODY, headers=seed.headers(housekeeper)
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "missing_permission"


@pytest.mark.asyncio
class TestBookings:
    async def test_booking_total_and_notification(self, test_client, seed, palm):
        hotel, admin = palm
        room = await create_room(test_client, seed, admin, "101")
        guest = await seed.guest(hotel)
        headers = seed.headers(admin)

        response = await test_client.post(
            "/v1/bookings",
            json={
                "room_id": room["id"],
                "guest_id": str(guest.id),
                "check_in_date": "2026-06-01",
                "check_out_date": "2026-06-04",
            },
            headers=headers,
        )

        assert response.status_code == 201, response.text
        booking = response.json()
        assert booking["total_amount"] == "345.00"
        assert booking["status"] == "pending"
        assert booking["booking_number"].startswith("BK")
        assert booking["check_in_date"].startswith("2026-06-01T14:00")
        assert booking["check_out_date"].startswith("2026-06-04T12:00")

        me = await test_client.get("/v1/auth/me", headers=headers)
        notifications = me.json()["hotel"]["notifications"]
        assert notifications[0]["type"] == "booking_new"
        assert "room 101" in notifications[0]["message"]

        profile = await test_client.get("/v1/hotel/settings", headers=headers)
        assert profile.json()["notifications"][0]["type"] == "booking_new"

        listed = await test_client.get("/v1/bookings?status=pending", headers=headers)
        assert [b["id"] for b in listed.json()["data"]] == [booking["id"]]

    async def test_notifications_disabled(self, test_client, seed):
        hotel = await seed.hotel(
            "Quiet Hotel",
            settings={"tax_rate": 0, "notifications": {"new_booking": False}},
        )
        admin = await seed.user(Role.ADMIN, hotel=hotel)
        room = await create_room(test_client, seed, admin, "101")
        guest = await seed.guest(hotel)

        response = await test_client.post(
            "/v1/bookings",
            json={
                "room_id": room["id"],
                "guest_id": str(guest.id),
                "check_in_date": "2026-06-01",
                "check_out_date": "2026-06-02",
            },
            headers=seed.headers(admin),
        )

        assert response.json()["total_amount"] == "100.00"
        me = await test_client.get("/v1/auth/me", headers=seed.headers(admin))
        assert me.json()["hotel"]["notifications"] == []

    async def test_foreign_room_or_guest(self, test_client, seed, palm, desert):
        own_room = await create_room(test_client, seed, palm[1], "101")
        foreign_room = await create_room(test_client, seed, desert[1], "101")
        own_guest = await seed.guest(palm[0])
        foreign_guest = await seed.guest(desert[0])

        def body(room_id, guest_id):
            return {
                "room_id": room_id,
                "guest_id": str(guest_id),
                "check_in_date": "2026-06-01",
                "check_out_date": "2026-06-02",
            }

        headers = seed.headers(palm[1])
        with_room = await test_client.post(
            "/v1/bookings", json=body(foreign_room["id"], own_guest.id), headers=headers
        )
        with_guest = await test_client.post(
            "/v1/bookings", json=body(own_room["id"], foreign_guest.id), headers=headers
        )

        assert with_room.status_code == 404
        assert with_room.json()["details"]["resource"] == "Room"
        assert with_guest.status_code == 404
        assert with_guest.json()["details"]["resource"] == "Guest"

    async def test_check_out_must_follow_check_in(self, test_client, seed, palm):
        room = await create_room(test_client, seed, palm[1], "101")
        guest = await seed.guest(palm[0])

        response = await test_client.post(
            "/v1/bookings",
            json={
                "room_id": room["id"],
                "guest_id": str(guest.id),
                "check_in_date": "2026-06-02",
                "check_out_date": "2026-06-01",
            },
            headers=seed.headers(palm[1]),
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestDashboardAndSettings:
    async def test_dashboard_counts_own_hotel(self, test_client, seed, palm, desert):
        await create_room(test_client, seed, palm[1], "101")
        await seed.room(palm[0], "102", status="occupied")
        await seed.room(palm[0], "103", status="cleaning")
        await create_room(test_client, seed, desert[1], "101")
        await seed.guest(palm[0])

        receptionist = await seed.user(Role.RECEPTIONIST, hotel=palm[0])
        response = await test_client.get("/v1/dashboard/stats", headers=seed.headers(receptionist))

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_rooms"] == 3
        assert stats["occupied_rooms"] == 1
        assert stats["occupancy_rate"] == 33.3
        assert stats["total_guests"] == 1

    async def test_settings_merge_notification_toggles(self, test_client, seed, palm):
        headers = seed.headers(palm[1])

        response = await test_client.patch(
            "/v1/hotel/settings",
            json={
                "name": "Palm Hotel & Spa",
                "settings": {"tax_rate": 5, "notifications": {"daily_report": False}},
            },
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Palm Hotel & Spa"
        assert body["settings"]["tax_rate"] == 5
        assert body["settings"]["check_in_time"] == "14:00"
        assert body["settings"]["notifications"]["daily_report"] is False
        assert body["settings"]["notifications"]["new_booking"] is True

    async def test_settings_email_conflict(self, test_client, seed, palm, desert):
        response = await test_client.patch(
            "/v1/hotel/settings", json={"email": desert[0].email}, headers=seed.headers(palm[1])
        )
        assert response.status_code == 409

    async def test_super_admin_acts_on_chosen_hotel(self, test_client, seed, super_admin, palm):
        headers = seed.headers(super_admin, **{"X-Hotel-Id": str(palm[0].id)})

        created = await test_client.post(
            "/v1/rooms",
            json={"room_number": "900", "floor": 9, "type": "presidential", "price_per_night": "900"},
            headers=headers,
        )
        listed = await test_client.get("/v1/rooms", headers=seed.headers(palm[1]))

        assert created.status_code == 201
        assert created.json()["hotel_id"] == str(palm[0].id)
        assert [room["room_number"] for room in listed.json()["data"]] == ["900"]

    async def test_unknown_room(self, test_client, seed, palm):
        response = await test_client.get(f"/v1/rooms/{uuid4()}", headers=seed.headers(palm[1]))
        assert response.status_code == 404


@pytest.mark.asyncio
class TestGuestUpdates:
    async def test_partial_update(self, test_client, seed, palm):
        guest = await seed.guest(palm[0])
        receptionist = await seed.user(Role.RECEPTIONIST, hotel=palm[0])

        response = await test_client.put(
            f"/v1/guests/{guest.id}",
            json={"phone": "+966522222222", "guest_type": "vip", "notes": "Late arrival"},
            headers=seed.headers(receptionist),
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["phone"] == "+966522222222"
        assert body["guest_type"] == "vip"
        assert body["notes"] == "Late arrival"
        assert body["first_name"] == "Sara"

    async def test_foreign_guest_is_not_found(self, test_client, seed, palm, desert):
        guest = await seed.guest(desert[0], first_name="Omar")

        response = await test_client.put(
            f"/v1/guests/{guest.id}", json={"first_name": "Changed"}, headers=seed.headers(palm[1])
        )
        unchanged = await test_client.get(
            f"/v1/guests/{guest.id}", headers=seed.headers(desert[1])
        )

        assert response.status_code == 404
        assert unchanged.json()["first_name"] == "Omar"

    async def test_required_field_cannot_be_cleared(self, test_client, seed, palm):
        guest = await seed.guest(palm[0])

        cleared = await test_client.put(
            f"/v1/guests/{guest.id}", json={"last_name": None}, headers=seed.headers(palm[1])
        )
        empty = await test_client.put(f"/v1/guests/{guest.id}", json={}, headers=seed.headers(palm[1]))

        assert cleared.status_code == 400
        assert cleared.json()["details"] == {"field": "last_name"}
        assert empty.status_code == 400

    async def test_housekeeping_cannot_update_guests(self, test_client, seed, palm):
        guest = await seed.guest(palm[0])
        housekeeper = await seed.user(Role.HOUSEKEEPING, hotel=palm[0])

        response = await test_client.put(
            f"/v1/guests/{guest.id}", json={"notes": "x"}, headers=seed.headers(housekeeper)
        )

        assert response.status_code == 403


@pytest.fixture
async def stay(seed, palm):
    """A pending booking of 300.00 in the Palm Hotel."""
    hotel = palm[0]
    room = await seed.room(hotel, "101")
    guest = await seed.guest(hotel)
    return await seed.booking(
        hotel, room, guest, utc_now() + timedelta(days=3), total="300.00", status="pending"
    )


@pytest.mark.asyncio
class TestBookingDetail:
    async def test_detail_includes_room_guest_and_payments(self, test_client, seed, palm):
        hotel = palm[0]
        room = await seed.room(hotel, "204", floor=2)
        guest = await seed.guest(hotel, "Lina", "Hassan")
        booking = await seed.booking(
            hotel,
            room,
            guest,
            utc_now() + timedelta(days=2),
            total="250.00",
            paid="50.00",
            payment_status="partial",
            payments=[("50.00", "cash")],
        )

        response = await test_client.get(f"/v1/bookings/{booking.id}", headers=seed.headers(palm[1]))

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["room"]["room_number"] == "204"
        assert body["room"]["floor"] == 2
        assert body["guest"]["first_name"] == "Lina"
        assert body["balance_due"] == "200.00"
        assert [(p["amount"], p["method"]) for p in body["payments"]] == [("50.00", "cash")]

    async def test_foreign_booking_is_not_found(self, test_client, seed, desert, stay):
        response = await test_client.get(f"/v1/bookings/{stay.id}", headers=seed.headers(desert[1]))
        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Booking"


@pytest.mark.asyncio
class TestBookingUpdates:
    async def test_full_stay_lifecycle(self, test_client, seed, palm, stay):
        receptionist = await seed.user(Role.RECEPTIONIST, hotel=palm[0])
        headers = seed.headers(receptionist)
        url = f"/v1/bookings/{stay.id}"

        confirmed = await test_client.put(url, json={"status": "confirmed"}, headers=headers)
        checked_in = await test_client.put(url, json={"status": "checked_in"}, headers=headers)
        checked_out = await test_client.put(url, json={"status": "checked_out"}, headers=headers)

        assert confirmed.json()["status"] == "confirmed"
        assert checked_in.json()["actual_check_in"] is not None
        assert checked_in.json()["actual_check_out"] is None
        assert checked_out.status_code == 200
        assert checked_out.json()["status"] == "checked_out"
        assert checked_out.json()["actual_check_out"] is not None

    async def test_transition_must_be_allowed(self, test_client, seed, palm, stay):
        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={"status": "checked_in"}, headers=seed.headers(palm[1])
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "status"}

    async def test_cancel_records_reason_and_is_final(self, test_client, seed, palm, stay):
        headers = seed.headers(palm[1])
        url = f"/v1/bookings/{stay.id}"

        cancelled = await test_client.put(
            url, json={"status": "cancelled", "cancellation_reason": " Guest request "}, headers=headers
        )
        reopened = await test_client.put(url, json={"status": "confirmed"}, headers=headers)

        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Guest request"
        assert cancelled.json()["cancelled_at"] is not None
        assert reopened.status_code == 400

    async def test_payments_update_balance_and_status(self, test_client, seed, palm, stay):
        headers = seed.headers(palm[1])
        url = f"/v1/bookings/{stay.id}"

        first = await test_client.put(
            url,
            json={"payment": {"amount": "100.00", "method": "card", "reference": "POS-1"}},
            headers=headers,
        )
        second = await test_client.patch(
            url, json={"payment": {"amount": "200.00", "method": "cash"}}, headers=headers
        )

        assert first.status_code == 200, first.text
        assert first.json()["paid_amount"] == "100.00"
        assert first.json()["payment_status"] == "partial"
        assert first.json()["payment_method"] == "card"
        body = second.json()
        assert body["paid_amount"] == "300.00"
        assert body["payment_status"] == "paid"
        assert body["balance_due"] == "0.00"
        assert [(p["amount"], p["method"], p["reference"]) for p in body["payments"]] == [
            ("100.00", "card", "POS-1"),
            ("200.00", "cash", None),
        ]

    async def test_notes_need_booking_update(self, test_client, seed, palm, stay):
        accountant = await seed.user(Role.ACCOUNTANT, hotel=palm[0])

        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={"notes": "VIP"}, headers=seed.headers(accountant)
        )

        assert response.status_code == 403
        assert response.json()["details"] == {"permission": "booking:update"}

    async def test_refund_needs_refund_permission(self, test_client, seed, palm, stay):
        receptionist = await seed.user(Role.RECEPTIONIST, hotel=palm[0])
        accountant = await seed.user(Role.ACCOUNTANT, hotel=palm[0])
        body = {"payment": {"status": "refunded"}}
        url = f"/v1/bookings/{stay.id}"

        denied = await test_client.put(url, json=body, headers=seed.headers(receptionist))
        refunded = await test_client.put(url, json=body, headers=seed.headers(accountant))

        assert denied.status_code == 403
        assert denied.json()["details"] == {"permission": "payment:refund"}
        assert refunded.status_code == 200
        assert refunded.json()["payment_status"] == "refunded"

    async def test_operator_without_update_permissions(self, test_client, seed, palm, stay):
        housekeeper = await seed.user(Role.HOUSEKEEPING, hotel=palm[0])

        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={"status": "confirmed"}, headers=seed.headers(housekeeper)
        )

        assert response.status_code == 403

    async def test_granted_transition_without_read_returns_no_content(
        self, test_client, seed, palm, stay
    ):
        housekeeper = await seed.user(
            Role.HOUSEKEEPING, hotel=palm[0], permissions=["booking:confirm"]
        )

        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={"status": "confirmed"}, headers=seed.headers(housekeeper)
        )
        detail = await test_client.get(f"/v1/bookings/{stay.id}", headers=seed.headers(palm[1]))

        assert response.status_code == 204
        assert detail.json()["status"] == "confirmed"

    async def test_empty_update_rejected(self, test_client, seed, palm, stay):
        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={}, headers=seed.headers(palm[1])
        )
        assert response.status_code == 400

    async def test_foreign_booking_is_untouched(self, test_client, seed, desert, palm, stay):
        response = await test_client.put(
            f"/v1/bookings/{stay.id}", json={"status": "confirmed"}, headers=seed.headers(desert[1])
        )
        detail = await test_client.get(f"/v1/bookings/{stay.id}", headers=seed.headers(palm[1]))

        assert response.status_code == 404
        assert detail.json()["status"] == "pending"
