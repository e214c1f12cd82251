"""HTTP surface: identity headers, cart, wishlist, merge, checkout, admin."""
from decimal import Decimal

import pytest

CHECKOUT_BODY = {
    "customer_name": "Иван Петров",
    "customer_email": "ivan@example.com",
    "customer_phone": "+79001234567",
    "address": "ул. Ленина, 1",
    "city": "Москва",
    "postal_code": "101000",
    "payment_method": "Наличными при получении",
}

USER = {"X-User-Id": "42"}


@pytest.fixture
def api(client, products):
    return client


def place_order(api, key="k1"):
    api.post("/cart/items", json={"product_id": 1}, headers=USER)
    return api.post("/orders", json=CHECKOUT_BODY, headers={**USER, "Idempotency-Key": key}).json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")

        assert r.status_code == 200
        assert r.json() == {"status": "ok"}


class TestAnonymousCart:
    def test_first_request_issues_token(self, api):
        r = api.post("/cart/items", json={"product_id": 1, "quantity": 2})

        assert r.status_code == 200
        token = r.headers["X-Cart-Token"]
        body = r.json()
        assert body["authenticated"] is False
        assert body["cart_key"] == token
        assert body["item_count"] == 2
        assert Decimal(body["subtotal"]) == Decimal("200.00")

    def test_token_is_reused(self, api):
        token = api.post("/cart/items", json={"product_id": 1}).headers["X-Cart-Token"]

        r = api.post("/cart/items", json={"product_id": 1, "quantity": 2}, headers={"X-Cart-Token": token})

        assert r.headers["X-Cart-Token"] == token
        assert r.json()["items"][0]["quantity"] == 3

    def test_inactive_product_is_404(self, api):
        r = api.post("/cart/items", json={"product_id": 3})

        assert r.status_code == 404
        assert r.json()["detail"]["error"] == "NotFound"

    def test_zero_quantity_is_rejected_by_schema(self, api):
        r = api.post("/cart/items", json={"product_id": 1, "quantity": 0})

        assert r.status_code == 422


class TestUserCart:
    def test_add_update_remove(self, api):
        api.post("/cart/items", json={"product_id": 1, "quantity": 1}, headers=USER)
        api.post("/cart/items", json={"product_id": 2, "quantity": 1}, headers=USER)

        r = api.put("/cart/items/1", json={"quantity": 4}, headers=USER)
        assert r.json()["item_count"] == 5
        assert "X-Cart-Token" not in r.headers

        r = api.delete("/cart/items/2", headers=USER)
        assert [i["product_id"] for i in r.json()["items"]] == [1]

        r = api.delete("/cart", headers=USER)
        assert r.json()["items"] == []

    def test_cart_is_keyed_by_user(self, api):
        api.post("/cart/items", json={"product_id": 1}, headers=USER)

        r = api.get("/cart", headers={"X-User-Id": "7"})

        assert r.json()["items"] == []


class TestWishlist:
    def test_check(self, api):
        api.post("/wishlist/2", headers=USER)

        assert api.get("/wishlist/check/2", headers=USER).json() == {"product_id": 2, "in_wishlist": True}
        assert api.get("/wishlist/check/1", headers=USER).json()["in_wishlist"] is False

    def test_anonymous_wishlist(self, api):
        r = api.post("/wishlist/1")
        token = r.headers["X-Cart-Token"]

        r = api.get("/wishlist", headers={"X-Cart-Token": token})

        assert r.json() == {"authenticated": False, "product_ids": [1]}


class TestMergeEndpoint:
    def test_login_merges_local_state_once(self, api):
        token = api.post("/cart/items", json={"product_id": 1, "quantity": 2}).headers["X-Cart-Token"]
        api.post("/wishlist/2", headers={"X-Cart-Token": token})
        api.post("/cart/items", json={"product_id": 1, "quantity": 1}, headers=USER)

        headers = {**USER, "X-Cart-Token": token, "X-Session-Id": "login-1"}
        r = api.post("/session/merge", headers=headers)

        assert r.status_code == 200
        body = r.json()
        assert body["already_merged"] is False
        assert body["cart"] == {"1": 3}
        assert body["wishlist"] == [2]

        again = api.post("/session/merge", headers=headers).json()
        assert again["already_merged"] is True
        assert again["cart"] == {"1": 3}

    def test_requires_user(self, api):
        r = api.post("/session/merge", headers={"X-Session-Id": "s"})

        assert r.status_code == 401


class TestCheckoutEndpoint:
    def test_created_then_replayed(self, api, notifier):
        api.post("/cart/items", json={"product_id": 1, "quantity": 2}, headers=USER)
        headers = {**USER, "Idempotency-Key": "abc-1"}

        first = api.post("/orders", json=CHECKOUT_BODY, headers=headers)
        second = api.post("/orders", json=CHECKOUT_BODY, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["payment_status"] == "не оплачен"
        assert Decimal(first.json()["total_amount"]) == Decimal("200.00")
        notifier.send_order_notification.assert_called_once()

    def test_key_in_body(self, api):
        api.post("/cart/items", json={"product_id": 2}, headers=USER)

        r = api.post("/orders", json={**CHECKOUT_BODY, "idempotency_key": "body-key"}, headers=USER)

        assert r.status_code == 201

    def test_insufficient_stock_is_409(self, api):
        api.post("/cart/items", json={"product_id": 4, "quantity": 2}, headers=USER)

        r = api.post("/orders", json=CHECKOUT_BODY, headers={**USER, "Idempotency-Key": "k"})

        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["error"] == "InsufficientStock"
        assert detail["details"] == {"product_id": 4, "requested": 2, "available": 1}

    def test_empty_cart_is_400(self, api):
        r = api.post("/orders", json=CHECKOUT_BODY, headers={**USER, "Idempotency-Key": "k"})

        assert r.status_code == 400

    def test_missing_key_is_400(self, api):
        api.post("/cart/items", json={"product_id": 1}, headers=USER)

        r = api.post("/orders", json=CHECKOUT_BODY, headers=USER)

        assert r.status_code == 400

    def test_guest_checkout(self, api):
        token = api.post("/cart/items", json={"product_id": 1}).headers["X-Cart-Token"]
        headers = {"X-Cart-Token": token, "Idempotency-Key": "g-1"}

        r = api.post("/orders", json=CHECKOUT_BODY, headers=headers)

        assert r.status_code == 201
        assert r.json()["user_id"] is None
        assert api.get("/cart", headers={"X-Cart-Token": token}).json()["items"] == []


class TestOrderEndpoints:
    def test_my_orders(self, api):
        order = place_order(api)

        r = api.get("/orders/my", headers=USER)

        assert [o["id"] for o in r.json()["orders"]] == [order["id"]]

    def test_my_orders_requires_user(self, api):
        assert api.get("/orders/my").status_code == 401

    def test_foreign_order_is_403(self, api):
        order = place_order(api)

        assert api.get(f"/orders/{order['id']}", headers={"X-User-Id": "7"}).status_code == 403
        assert api.get(f"/orders/{order['id']}", headers=USER).status_code == 200

    def test_missing_order_is_404(self, api):
        assert api.get("/orders/999", headers=USER).status_code == 404


class TestAdmin:
    def test_requires_admin_role(self, api):
        order = place_order(api)

        r = api.put(f"/admin/orders/{order['id']}/status", json={"status": "processing"})

        assert r.status_code == 403

    def test_status_update(self, api):
        order = place_order(api)
        admin = {"X-User-Role": "admin"}

        r = api.put(f"/admin/orders/{order['id']}/status", json={"status": "processing"}, headers=admin)
        assert r.status_code == 200
        assert r.json()["status"] == "processing"

        r = api.put(f"/admin/orders/{order['id']}/status", json={"status": "pending"}, headers=admin)
        assert r.status_code == 409
