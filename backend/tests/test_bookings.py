"""
Booking lifecycle tests.

Verifies:
- Totals: tour/package priced per adult+child, hotel rooms per night
- Date and occupancy rules
- Customers can edit pending bookings and cancel with a reason
- Admin status changes stamp confirmed_at / cancelled_at only
- Admin listing spans all users with status, payment and date filters
"""

from datetime import datetime, timedelta

import pytest

from sahara.models import Booking
from sahara.services import booking_service, payment_service
from sahara.services.booking_service import BookingError
from sahara.time_utils import today


def _day(offset: int) -> str:
    return (today() + timedelta(days=offset)).isoformat()


# =============================================================================
# CREATE
# =============================================================================


class TestCreateBooking:

    def test_tour_booking_total(self, client, tour, user_headers):
        resp = client.post("/api/bookings", json={
            "type": "tour", "item_id": tour.id,
            "travel_date": _day(30), "adults": 2, "children": 1, "infants": 1,
        }, headers=user_headers)
        assert resp.status_code == 201
        booking = resp.get_json()["booking"]
        assert booking["total_amount_cents"] == 80 * 3
        assert booking["status"] == "pending"
        assert booking["payment_status"] == "unpaid"
        assert booking["paid_amount_cents"] == 0
        assert booking["participants"] == 4
        assert booking["item_name"] == "Pyramids Day Tour"
        assert booking["booking_number"].startswith("SJB")
        assert len(booking["booking_number"]) == 15

    def test_package_booking_total(self, client, package, user_headers):
        resp = client.post("/api/bookings", json={
            "type": "package", "item_id": package.id, "travel_date": _day(10), "adults": 2,
        }, headers=user_headers)
        assert resp.status_code == 201
        assert resp.get_json()["booking"]["total_amount_cents"] == 300000

    def test_hotel_booking_priced_per_night(self, client, hotel_room, user_headers):
        hotel, room = hotel_room
        resp = client.post("/api/bookings", json={
            "type": "hotel", "item_id": hotel.id, "room_id": room.id,
            "travel_date": _day(10), "return_date": _day(13), "adults": 2, "children": 1,
        }, headers=user_headers)
        assert resp.status_code == 201
        assert resp.get_json()["booking"]["total_amount_cents"] == 15000 * 3

    def test_hotel_without_return_is_one_night(self, client, hotel_room, user_headers):
        hotel, room = hotel_room
        resp = client.post("/api/bookings", json={
            "type": "hotel", "item_id": hotel.id, "room_id": room.id, "travel_date": _day(10),
        }, headers=user_headers)
        assert resp.get_json()["booking"]["total_amount_cents"] == 15000

    def test_hotel_requires_room(self, client, hotel_room, user_headers):
        hotel, _ = hotel_room
        resp = client.post("/api/bookings", json={
            "type": "hotel", "item_id": hotel.id, "travel_date": _day(10),
        }, headers=user_headers)
        assert resp.status_code == 400

    def test_room_capacity_enforced(self, client, hotel_room, user_headers):
        hotel, room = hotel_room
        resp = client.post("/api/bookings", json={
            "type": "hotel", "item_id": hotel.id, "room_id": room.id,
            "travel_date": _day(10), "adults": 3,
        }, headers=user_headers)
        assert resp.status_code == 400

    def test_unknown_tour(self, client, db_session, user_headers):
        resp = client.post("/api/bookings", json={
            "type": "tour", "item_id": 999, "travel_date": _day(10),
        }, headers=user_headers)
        assert resp.status_code == 404

    @pytest.mark.parametrize("patch", [
        {"type": "cruise"},
        {"travel_date": None},
        {"travel_date": _day(0)},
        {"travel_date": _day(-3)},
        {"return_date": _day(5)},
        {"adults": 0},
        {"children": -1},
        {"special_requests": "x" * 1001},
        {"status": "confirmed"},
        {"total_amount_cents": 1},
    ])
    def test_rejects_bad_payload(self, client, tour, user_headers, patch):
        body = {"type": "tour", "item_id": tour.id, "travel_date": _day(10)}
        body.update(patch)
        resp = client.post("/api/bookings", json=body, headers=user_headers)
        assert resp.status_code == 400, patch

    def test_requires_auth(self, client, tour):
        resp = client.post("/api/bookings", json={"type": "tour", "item_id": tour.id, "travel_date": _day(10)})
        assert resp.status_code == 401


# =============================================================================
# READ / EDIT / CANCEL
# =============================================================================


class TestCustomerBookingActions:

    def test_list_and_get_own_only(self, client, user, other_user, other_headers, user_headers, make_booking):
        mine = make_booking(user)
        make_booking(other_user)

        listing = client.get("/api/bookings", headers=user_headers).get_json()["bookings"]
        assert [b["id"] for b in listing] == [mine.id]

        assert client.get(f"/api/bookings/{mine.id}", headers=user_headers).status_code == 200
        assert client.get(f"/api/bookings/{mine.id}", headers=other_headers).status_code == 404

    def test_list_filter_by_status(self, client, user, user_headers, make_booking):
        make_booking(user)
        done = make_booking(user, status="completed")
        listing = client.get("/api/bookings?status=completed", headers=user_headers).get_json()["bookings"]
        assert [b["id"] for b in listing] == [done.id]
        assert client.get("/api/bookings?status=bogus", headers=user_headers).status_code == 400

    def test_update_reprices(self, client, tour, user_headers):
        booking_id = client.post("/api/bookings", json={
            "type": "tour", "item_id": tour.id, "travel_date": _day(30), "adults": 1,
        }, headers=user_headers).get_json()["booking"]["id"]

        resp = client.put(f"/api/bookings/{booking_id}", json={"adults": 3, "special_requests": "Vegetarian"}, headers=user_headers)
        assert resp.status_code == 200
        booking = resp.get_json()["booking"]
        assert booking["total_amount_cents"] == 240
        assert booking["special_requests"] == "Vegetarian"

    def test_update_return_before_travel_rejected(self, client, tour, user_headers):
        booking_id = client.post("/api/bookings", json={
            "type": "tour", "item_id": tour.id, "travel_date": _day(30),
        }, headers=user_headers).get_json()["booking"]["id"]
        resp = client.put(f"/api/bookings/{booking_id}", json={"return_date": _day(29)}, headers=user_headers)
        assert resp.status_code == 400

    def test_update_only_while_pending(self, client, user, user_headers, make_booking):
        booking = make_booking(user, status="confirmed")
        resp = client.put(f"/api/bookings/{booking.id}", json={"adults": 2}, headers=user_headers)
        assert resp.status_code == 400

    def test_update_cannot_drop_below_paid(self, db_session, tour, user):
        booking = booking_service.create_booking(user.id, {
            "type": "tour", "item_id": tour.id, "travel_date": _day(30), "adults": 3,
        })
        booking.paid_amount_cents = 200
        db_session.commit()

        with pytest.raises(BookingError):
            booking_service.update_booking(user.id, booking.id, {"adults": 1})
        assert db_session.get(Booking, booking.id).total_amount_cents == 240

    def test_reprice_recomputes_payment_status(self, tour, user):
        booking = booking_service.create_booking(user.id, {
            "type": "tour", "item_id": tour.id, "travel_date": _day(30), "adults": 5,
        })
        assert booking.total_amount_cents == 400
        payment_service.apply_payment(user.id, booking.id, 320, "cash")
        assert booking.payment_status == "partial"

        booking = booking_service.update_booking(user.id, booking.id, {"adults": 4})
        assert booking.total_amount_cents == 320
        assert booking.payment_status == "paid"

        booking = booking_service.update_booking(user.id, booking.id, {"adults": 6})
        assert booking.total_amount_cents == 480
        assert booking.payment_status == "partial"
        assert booking.remaining_amount_cents == 160

    def test_cancel_requires_reason(self, client, user, user_headers, make_booking):
        booking = make_booking(user)
        assert client.post(f"/api/bookings/{booking.id}/cancel", json={}, headers=user_headers).status_code == 400

        resp = client.post(
            f"/api/bookings/{booking.id}/cancel", json={"cancellation_reason": "Change of plans"}, headers=user_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()["booking"]
        assert body["status"] == "cancelled"
        assert body["cancelled_at"] is not None
        assert body["cancellation_reason"] == "Change of plans"

        again = client.post(f"/api/bookings/{booking.id}/cancel", json={"reason": "Again"}, headers=user_headers)
        assert again.status_code == 400

    def test_cannot_cancel_foreign_booking(self, client, other_user, user_headers, make_booking):
        booking = make_booking(other_user)
        resp = client.post(f"/api/bookings/{booking.id}/cancel", json={"reason": "x"}, headers=user_headers)
        assert resp.status_code == 404


# =============================================================================
# ADMIN STATUS
# =============================================================================


class TestAdminStatus:

    def test_cancel_sets_cancelled_at_only(self, client, user, admin_headers, make_booking):
        booking = make_booking(user)
        resp = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "cancelled"}, headers=admin_headers)
        assert resp.status_code == 200
        body = resp.get_json()["booking"]
        assert body["status"] == "cancelled"
        assert body["cancelled_at"] is not None
        assert body["confirmed_at"] is None

    def test_confirm_sets_confirmed_at(self, client, user, admin_headers, make_booking):
        booking = make_booking(user)
        body = client.patch(
            f"/api/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=admin_headers,
        ).get_json()["booking"]
        assert body["confirmed_at"] is not None
        assert body["cancelled_at"] is None

    def test_transitions_are_unrestricted(self, client, user, admin_headers, make_booking):
        booking = make_booking(user, status="completed")
        resp = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["booking"]["status"] == "pending"

    def test_unknown_status_rejected(self, client, user, admin_headers, make_booking):
        booking = make_booking(user)
        resp = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "shipped"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_non_admin_forbidden(self, client, user, user_headers, make_booking):
        booking = make_booking(user)
        resp = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=user_headers)
        assert resp.status_code == 403

    def test_anonymous_unauthorized(self, client, user, make_booking):
        booking = make_booking(user)
        resp = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "confirmed"})
        assert resp.status_code == 401

    def test_missing_booking(self, client, admin_headers):
        resp = client.patch("/api/bookings/9999/status", json={"status": "confirmed"}, headers=admin_headers)
        assert resp.status_code == 404


# =============================================================================
# ADMIN LISTING
# =============================================================================


class TestAdminListing:

    @pytest.fixture
    def dated_bookings(self, db_session, user, other_user, make_booking):
        """Three bookings on fixed creation dates: March 1, March 10, March 20."""
        def _at(owner, created_at, **kwargs):
            booking = make_booking(owner, **kwargs)
            booking.created_at = created_at
            db_session.commit()
            return booking

        return [
            _at(user, datetime(2026, 3, 1, 9, 0)),
            _at(other_user, datetime(2026, 3, 10, 23, 59), status="confirmed"),
            _at(user, datetime(2026, 3, 20, 0, 0), status="cancelled"),
        ]

    def test_lists_every_user_newest_first(self, client, admin_headers, dated_bookings):
        resp = client.get("/api/admin/bookings", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert [b["id"] for b in body["bookings"]] == [b.id for b in reversed(dated_bookings)]
        assert body["count"] == 3
        assert "pagination" not in body

    def test_status_filter(self, client, admin_headers, dated_bookings):
        body = client.get("/api/admin/bookings?status=confirmed", headers=admin_headers).get_json()
        assert [b["id"] for b in body["bookings"]] == [dated_bookings[1].id]

    def test_payment_status_filter(self, db_session, dated_bookings):
        dated_bookings[0].paid_amount_cents = 10000
        dated_bookings[0].payment_status = "partial"
        db_session.commit()

        result = booking_service.list_all_bookings(payment_status="partial")
        assert [b["id"] for b in result["bookings"]] == [dated_bookings[0].id]
        assert booking_service.list_all_bookings(payment_status="paid")["count"] == 0

    def test_date_range_is_inclusive(self, client, admin_headers, dated_bookings):
        body = client.get(
            "/api/admin/bookings?date_from=2026-03-01&date_to=2026-03-10", headers=admin_headers,
        ).get_json()
        assert [b["id"] for b in body["bookings"]] == [dated_bookings[1].id, dated_bookings[0].id]

        later = booking_service.list_all_bookings(date_from="2026-03-11")
        assert [b["id"] for b in later["bookings"]] == [dated_bookings[2].id]

    @pytest.mark.parametrize("query", [
        "status=shipped",
        "payment_status=refunded",
        "date_from=March",
        "date_from=2026-03-10&date_to=2026-03-01",
    ])
    def test_rejects_bad_filters(self, client, admin_headers, db_session, query):
        assert client.get(f"/api/admin/bookings?{query}", headers=admin_headers).status_code == 400

    def test_pagination(self, client, admin_headers, dated_bookings):
        body = client.get("/api/admin/bookings?page=2&per_page=2", headers=admin_headers).get_json()
        assert [b["id"] for b in body["bookings"]] == [dated_bookings[0].id]
        assert body["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    def test_non_admin_forbidden(self, client, user_headers):
        assert client.get("/api/admin/bookings", headers=user_headers).status_code == 403

    def test_anonymous_unauthorized(self, client, db_session):
        assert client.get("/api/admin/bookings").status_code == 401
