"""
Cart tests.

Verifies:
- Anonymous carts are keyed by session_id, user carts by the logged-in user
- Every mutation is ownership-scoped (foreign rows look missing)
- Catalog price is captured when the client omits it
- Listing survives catalog rows that no longer exist
"""

import pytest

from sahara.models import CartItem
from sahara.services import cart_service
from sahara.services.cart_service import CartOwner
from sahara.validation import NotFoundError, ValidationError


def _add(client, body, headers=None):
    return client.post("/api/cart", json=body, headers=headers or {})


class TestCartOwner:

    def test_requires_exactly_one_owner(self):
        with pytest.raises(ValidationError):
            CartOwner()
        with pytest.raises(ValidationError):
            CartOwner(user_id=1, session_id="abc")

    def test_resolve_prefers_user(self):
        assert CartOwner.resolve(7, "abc") == CartOwner(user_id=7)
        assert CartOwner.resolve(None, "  abc ") == CartOwner(session_id="abc")
        assert CartOwner.resolve(None, "") is None
        assert CartOwner.resolve(None, None) is None


# =============================================================================
# ANONYMOUS CART
# =============================================================================


class TestAnonymousCart:

    def test_add_and_list(self, client, tour):
        resp = _add(client, {
            "session_id": "sess-1",
            "item_type": "tour",
            "item_id": tour.id,
            "quantity": 2,
            "price_at_add_cents": 100,
            "discounted_price_at_add_cents": 80,
            "adults": 2,
        })
        assert resp.status_code == 201
        item = resp.get_json()["item"]
        assert item["session_id"] == "sess-1"
        assert item["user_id"] is None
        assert item["line_total_cents"] == 160

        listing = client.get("/api/cart?session_id=sess-1").get_json()
        assert listing["total_cents"] == 160
        assert len(listing["items"]) == 1
        assert listing["items"][0]["item_name"] == "Pyramids Day Tour"
        assert listing["items"][0]["item"]["id"] == tour.id

    def test_no_owner_lists_empty(self, client, db_session):
        resp = client.get("/api/cart")
        assert resp.status_code == 200
        assert resp.get_json() == {"items": [], "total_cents": 0}

    def test_no_owner_cannot_mutate(self, client, tour):
        resp = _add(client, {"item_type": "tour", "item_id": tour.id})
        assert resp.status_code == 400
        assert client.delete("/api/cart/clear").status_code == 400

    def test_price_taken_from_catalog(self, client, tour):
        resp = _add(client, {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id})
        item = resp.get_json()["item"]
        assert item["price_at_add_cents"] == 100
        assert item["discounted_price_at_add_cents"] == 80
        assert item["quantity"] == 1

    def test_unknown_item_without_price_rejected(self, client, db_session):
        resp = _add(client, {"session_id": "sess-1", "item_type": "package", "item_id": 999})
        assert resp.status_code == 400

    def test_duplicates_are_not_merged(self, client, tour):
        for _ in range(2):
            _add(client, {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id})
        assert len(client.get("/api/cart?session_id=sess-1").get_json()["items"]) == 2

    def test_missing_catalog_row_gets_fallback_label(self, client, db_session):
        _add(client, {
            "session_id": "sess-1", "item_type": "hotel", "item_id": 404, "price_at_add_cents": 5000,
        })
        items = client.get("/api/cart?session_id=sess-1").get_json()["items"]
        assert items[0]["item_name"] == "hotel #404"
        assert items[0]["item"] is None


# =============================================================================
# VALIDATION
# =============================================================================


class TestCartValidation:

    @pytest.mark.parametrize("patch", [
        {"item_type": "cruise"},
        {"quantity": 0},
        {"quantity": 101},
        {"quantity": 1.5},
        {"adults": 0},
        {"children": -1},
        {"price_at_add_cents": -5},
        {"check_in_date": "2030-05-10", "check_out_date": "2030-05-10"},
        {"travel_date": "not-a-date"},
        {"user_id": 1},
    ])
    def test_rejects_bad_payload(self, client, tour, patch):
        body = {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id}
        body.update(patch)
        resp = _add(client, body)
        assert resp.status_code == 400, patch
        assert "message" in resp.get_json()

    def test_missing_item_type(self, client, db_session):
        resp = _add(client, {"session_id": "sess-1", "item_id": 1, "price_at_add_cents": 100})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Missing required fields: item_type"


# =============================================================================
# OWNERSHIP SCOPING
# =============================================================================


class TestCartOwnership:

    def test_update_quantity(self, client, tour):
        item_id = _add(client, {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id}).get_json()["item"]["id"]
        resp = client.patch(f"/api/cart/{item_id}", json={"session_id": "sess-1", "quantity": 3})
        assert resp.status_code == 200
        assert resp.get_json()["item"]["quantity"] == 3
        assert resp.get_json()["item"]["line_total_cents"] == 240

    def test_update_rejects_dates_out_of_order(self, client, tour):
        item_id = _add(client, {
            "session_id": "sess-1", "item_type": "tour", "item_id": tour.id, "check_in_date": "2030-05-10",
        }).get_json()["item"]["id"]
        resp = client.patch(f"/api/cart/{item_id}", json={"session_id": "sess-1", "check_out_date": "2030-05-09"})
        assert resp.status_code == 400

    def test_other_session_cannot_touch_item(self, client, tour):
        item_id = _add(client, {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id}).get_json()["item"]["id"]

        assert client.patch(f"/api/cart/{item_id}", json={"session_id": "sess-2", "quantity": 5}).status_code == 404
        assert client.delete(f"/api/cart/{item_id}", json={"session_id": "sess-2"}).status_code == 404
        assert client.get("/api/cart?session_id=sess-2").get_json()["items"] == []

        listing = client.get("/api/cart?session_id=sess-1").get_json()["items"]
        assert listing[0]["quantity"] == 1

    def test_user_cart_isolated_from_anonymous(self, client, tour, user_headers):
        _add(client, {"session_id": "sess-1", "item_type": "tour", "item_id": tour.id})
        _add(client, {"item_type": "tour", "item_id": tour.id, "quantity": 4}, headers=user_headers)

        mine = client.get("/api/cart", headers=user_headers).get_json()["items"]
        assert len(mine) == 1
        assert mine[0]["quantity"] == 4
        assert mine[0]["session_id"] is None

        anon = client.get("/api/cart?session_id=sess-1").get_json()["items"]
        assert len(anon) == 1
        assert anon[0]["quantity"] == 1

    def test_other_user_cannot_remove_item(self, client, tour, user_headers, other_headers):
        item_id = _add(client, {"item_type": "tour", "item_id": tour.id}, headers=user_headers).get_json()["item"]["id"]
        assert client.delete(f"/api/cart/{item_id}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/cart/{item_id}", headers=user_headers).status_code == 200
        assert client.delete(f"/api/cart/{item_id}", headers=user_headers).status_code == 404

    def test_clear_only_affects_owner(self, client, tour):
        for sess in ("sess-1", "sess-1", "sess-2"):
            _add(client, {"session_id": sess, "item_type": "tour", "item_id": tour.id})

        resp = client.delete("/api/cart/clear", json={"session_id": "sess-1"})
        assert resp.status_code == 200
        assert resp.get_json()["deleted"] == 2
        assert len(client.get("/api/cart?session_id=sess-2").get_json()["items"]) == 1


class TestCartService:

    def test_cart_total_uses_discounted_price(self, tour):
        owner = CartOwner(session_id="svc")
        cart_service.add_item(owner, {"item_type": "tour", "item_id": tour.id, "quantity": 3})
        cart_service.add_item(owner, {
            "item_type": "visa", "item_id": 1, "price_at_add_cents": 2500,
        })
        assert cart_service.cart_total_cents(owner) == 3 * 80 + 2500

    def test_remove_missing_raises(self, db_session):
        with pytest.raises(NotFoundError):
            cart_service.remove_item(CartOwner(session_id="svc"), 12345)
        assert db_session.query(CartItem).count() == 0
