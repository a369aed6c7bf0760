"""
Checkout tests.

Verifies:
- Checkout snapshots every cart row into an OrderItem and empties the cart
- totalPrice == (discounted ?? unit) * quantity on every line
- Order numbers are unique; collisions retry with a fresh number
- A failed checkout leaves the cart untouched
"""

import re

import pytest
from sqlalchemy.exc import IntegrityError

from sahara.models import CartItem, Order, OrderItem
from sahara.services import cart_service, order_service
from sahara.services.cart_service import CartOwner
from sahara.services.order_service import EmptyCartError


ORDER_NUMBER_RE = re.compile(r"^SJ\d{13}-[0-9A-Z]{6}$")


def _fill_cart(owner, tour):
    cart_service.add_item(owner, {
        "item_type": "tour", "item_id": tour.id, "quantity": 2,
        "price_at_add_cents": 100, "discounted_price_at_add_cents": 80,
    })
    cart_service.add_item(owner, {
        "item_type": "visa", "item_id": 77, "quantity": 1, "price_at_add_cents": 2500,
    })


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCheckout:

    def test_tour_line_snapshot(self, client, tour):
        client.post("/api/cart", json={
            "session_id": "sess-1", "item_type": "tour", "item_id": 5, "quantity": 2,
            "price_at_add_cents": 100, "discounted_price_at_add_cents": 80,
        })

        resp = client.post("/api/orders", json={"session_id": "sess-1", "customer_name": "Amina"})
        assert resp.status_code == 201
        body = resp.get_json()
        assert ORDER_NUMBER_RE.match(body["order_number"])

        items = body["order"]["items"]
        assert len(items) == 1
        assert items[0]["unit_price_cents"] == 80
        assert items[0]["total_price_cents"] == 160
        assert items[0]["item_name"] == "Pyramids Day Tour"
        assert body["order"]["total_amount_cents"] == 160
        assert body["order"]["customer_name"] == "Amina"
        assert body["order"]["status"] == "pending"

        assert client.get("/api/cart?session_id=sess-1").get_json()["items"] == []

    def test_item_count_and_totals(self, db_session, tour):
        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)

        order = order_service.create_order(owner)

        assert len(order.items) == 2
        for item in order.items:
            effective = item.discounted_price_cents if item.discounted_price_cents is not None else item.unit_price_cents
            assert item.total_price_cents == effective * item.quantity
        assert order.total_amount_cents == 160 + 2500
        assert db_session.query(CartItem).count() == 0

    def test_missing_catalog_row_uses_fallback_name(self, db_session, tour):
        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)
        order = order_service.create_order(owner)
        assert {i.item_name for i in order.items} == {"Pyramids Day Tour", "visa #77"}

    def test_snapshot_survives_catalog_edit(self, client, db_session, tour):
        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)
        order = order_service.create_order(owner)

        tour.name = "Renamed Tour"
        tour.price_cents = 99999
        db_session.commit()

        fetched = client.get(f"/api/orders/{order.order_number}").get_json()["order"]
        tour_line = next(i for i in fetched["items"] if i["item_type"] == "tour")
        assert tour_line["item_name"] == "Pyramids Day Tour"
        assert tour_line["unit_price_cents"] == 80

    def test_empty_cart_rejected(self, client, db_session):
        resp = client.post("/api/orders", json={"session_id": "nothing-here"})
        assert resp.status_code == 400
        assert resp.get_json() == {"message": "Cart is empty"}
        assert db_session.query(Order).count() == 0

    def test_anonymous_checkout_requires_session(self, client, db_session):
        resp = client.post("/api/orders", json={})
        assert resp.status_code == 400

    def test_checkout_only_consumes_owner_cart(self, client, tour, user, user_headers):
        client.post("/api/cart", json={"item_type": "tour", "item_id": tour.id}, headers=user_headers)
        client.post("/api/cart", json={"session_id": "sess-1", "item_type": "tour", "item_id": tour.id})

        resp = client.post("/api/orders", json={}, headers=user_headers)
        assert resp.status_code == 201
        assert resp.get_json()["order"]["user_id"] == user.id

        assert client.get("/api/cart", headers=user_headers).get_json()["items"] == []
        assert len(client.get("/api/cart?session_id=sess-1").get_json()["items"]) == 1

    def test_rejects_unknown_checkout_field(self, client, tour):
        client.post("/api/cart", json={"session_id": "sess-1", "item_type": "tour", "item_id": tour.id})
        resp = client.post("/api/orders", json={"session_id": "sess-1", "total_amount_cents": 1})
        assert resp.status_code == 400
        assert len(client.get("/api/cart?session_id=sess-1").get_json()["items"]) == 1


# =============================================================================
# ORDER NUMBERS
# =============================================================================


class TestOrderNumbers:

    def test_format(self):
        assert ORDER_NUMBER_RE.match(order_service.generate_order_number())

    def test_collision_retries_with_fresh_number(self, db_session, tour, monkeypatch):
        db_session.add(Order(order_number="SJ1-TAKEN", session_id="earlier", total_amount_cents=0))
        db_session.commit()

        numbers = iter(["SJ1-TAKEN", "SJ2-FRESH"])
        monkeypatch.setattr(order_service, "generate_order_number", lambda: next(numbers))

        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)
        order = order_service.create_order(owner)

        assert order.order_number == "SJ2-FRESH"
        assert db_session.query(OrderItem).count() == 2
        assert db_session.query(CartItem).count() == 0

    def test_exhausted_retries_leave_cart_intact(self, db_session, tour, monkeypatch):
        db_session.add(Order(order_number="SJ1-TAKEN", session_id="earlier", total_amount_cents=0))
        db_session.commit()
        monkeypatch.setattr(order_service, "generate_order_number", lambda: "SJ1-TAKEN")

        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)
        with pytest.raises(IntegrityError):
            order_service.create_order(owner)

        assert db_session.query(Order).count() == 1
        assert db_session.query(OrderItem).count() == 0
        assert db_session.query(CartItem).filter_by(session_id="sess-1").count() == 2

    def test_other_integrity_errors_are_not_retried(self, db_session, tour, monkeypatch):
        calls = []

        def _numbered():
            calls.append(1)
            return f"SJ{len(calls)}-UNIQUE"

        def _nameless(order, row):
            item = snapshot(order, row)
            item.item_name = None
            return item

        snapshot = order_service._snapshot
        monkeypatch.setattr(order_service, "generate_order_number", _numbered)
        monkeypatch.setattr(order_service, "_snapshot", _nameless)

        owner = CartOwner(session_id="sess-1")
        _fill_cart(owner, tour)
        with pytest.raises(IntegrityError):
            order_service.create_order(owner)

        assert len(calls) == 1
        assert db_session.query(Order).count() == 0
        assert db_session.query(CartItem).filter_by(session_id="sess-1").count() == 2

    def test_empty_cart_service_error(self, db_session):
        with pytest.raises(EmptyCartError):
            order_service.create_order(CartOwner(session_id="nobody"))


# =============================================================================
# LOOKUP
# =============================================================================


class TestOrderLookup:

    def test_get_unknown_order(self, client, db_session):
        resp = client.get("/api/orders/SJ0-NOPE00")
        assert resp.status_code == 404
        assert resp.get_json() == {"message": "Order not found"}

    def test_list_requires_auth(self, client, db_session):
        assert client.get("/api/orders").status_code == 401

    def test_list_own_orders(self, client, tour, user, user_headers, other_headers):
        client.post("/api/cart", json={"item_type": "tour", "item_id": tour.id}, headers=user_headers)
        number = client.post("/api/orders", json={}, headers=user_headers).get_json()["order_number"]

        mine = client.get("/api/orders", headers=user_headers).get_json()["orders"]
        assert [o["order_number"] for o in mine] == [number]
        assert client.get("/api/orders", headers=other_headers).get_json()["orders"] == []
