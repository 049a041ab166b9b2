"""Integration tests for the order and cart endpoints via TestClient."""

CUSTOMER = {"X-User-Id": "user-ada", "X-User-Email": "ada@example.com", "X-User-Name": "Ada Obi"}
OTHER = {"X-User-Id": "user-bola"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}

ADDRESS = {
    "first_name": "Ada",
    "last_name": "Obi",
    "email": "ada@example.com",
    "phone": "+2348000000000",
    "address": "12 Marina Road",
    "city": "Lagos",
    "state": "Lagos",
}
TWO_TOTES = [{"product_id": "prod-a", "quantity": 2}]


def _create_order(client, items=TWO_TOTES, headers=CUSTOMER, **overrides):
    body = {
        "items": items,
        "shipping_address": ADDRESS,
        "payment_method": "card",
    }
    body.update(overrides)
    return client.post("/orders", json=body, headers=headers)


class TestCreateOrderAPI:
    def test_returns_201_with_priced_order(self, client):
        response = _create_order(client)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["customer_id"] == "user-ada"
        assert data["pricing"] == {"subtotal": 20000.0, "tax": 1500.0, "shipping": 2500.0, "total": 24000.0}
        assert data["items"][0]["title"] == "Ankara Tote"
        assert data["billing_address"]["city"] == "Lagos"

    def test_from_cart(self, client, carts):
        carts.add_item("user-ada", "prod-b", 1)

        response = _create_order(client, items=None)

        assert response.status_code == 201
        assert response.json()["items"][0]["product_id"] == "prod-b"

    def test_requires_identity(self, client):
        response = client.post("/orders", json={"shipping_address": ADDRESS, "payment_method": "card"})
        assert response.status_code == 401

    def test_empty_cart_is_400(self, client):
        response = _create_order(client, items=None)

        assert response.status_code == 400
        assert response.json()["error"] == "empty_cart"

    def test_insufficient_stock_is_409(self, client, catalog):
        response = _create_order(client, items=[{"product_id": "prod-b", "quantity": 6}])

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["details"]["product_id"] == "prod-b"
        assert catalog.get_product("prod-b").quantity == 5

    def test_unknown_product_is_409(self, client):
        response = _create_order(client, items=[{"product_id": "nope", "quantity": 1}])
        assert response.status_code == 409
        assert response.json()["error"] == "product_unavailable"

    def test_invalid_payment_method_is_400(self, client):
        response = _create_order(client, payment_method="cash")
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_zero_quantity_is_rejected_by_schema(self, client):
        response = _create_order(client, items=[{"product_id": "prod-a", "quantity": 0}])
        assert response.status_code == 422

    def test_incomplete_address_is_rejected_by_schema(self, client):
        response = _create_order(client, shipping_address={"address": "x", "city": "y"})
        assert response.status_code == 422

    def test_malformed_email_is_400(self, client):
        response = _create_order(client, shipping_address={**ADDRESS, "email": "ada-at-example"})
        assert response.status_code == 400
        assert "email" in response.json()["details"]


class TestGetOrderAPI:
    def test_owner_reads_order(self, client):
        order_id = _create_order(client).json()["id"]

        response = client.get(f"/orders/{order_id}", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["id"] == order_id

    def test_other_customer_is_403(self, client):
        order_id = _create_order(client).json()["id"]
        assert client.get(f"/orders/{order_id}", headers=OTHER).status_code == 403

    def test_missing_order_is_404(self, client):
        response = client.get("/orders/does-not-exist", headers=CUSTOMER)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestCancelOrderAPI:
    def test_owner_cancels(self, client, catalog):
        order_id = _create_order(client).json()["id"]

        response = client.post(f"/orders/{order_id}/cancel", json={"reason": "Wrong size"}, headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancellation_reason"] == "Wrong size"
        assert catalog.get_product("prod-a").quantity == 10

    def test_cancel_without_body(self, client):
        order_id = _create_order(client).json()["id"]
        response = client.post(f"/orders/{order_id}/cancel", headers=CUSTOMER)
        assert response.json()["cancellation_reason"] == "Cancelled by user"

    def test_cancel_twice_is_409(self, client):
        order_id = _create_order(client).json()["id"]
        client.post(f"/orders/{order_id}/cancel", headers=CUSTOMER)

        response = client.post(f"/orders/{order_id}/cancel", headers=CUSTOMER)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"


class TestTransitionStatusAPI:
    def test_admin_ships_order(self, client):
        order_id = _create_order(client).json()["id"]
        client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=ADMIN)

        response = client.put(
            f"/orders/{order_id}/status",
            json={"status": "shipped", "tracking_number": "GIG-9"},
            headers=ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "shipped"
        assert response.json()["tracking_number"] == "GIG-9"
        assert response.json()["shipped_at"] is not None

    def test_customer_is_403(self, client):
        order_id = _create_order(client).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "processing"}, headers=CUSTOMER)
        assert response.status_code == 403

    def test_illegal_jump_is_409(self, client):
        order_id = _create_order(client).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "delivered"}, headers=ADMIN)
        assert response.status_code == 409


class TestCartQuoteAPI:
    def test_quote(self, client, carts):
        carts.add_item("user-ada", "prod-a", 2)
        carts.add_item("user-ada", "ghost", 1)

        response = client.get("/cart/quote", headers=CUSTOMER)

        assert response.status_code == 200
        data = response.json()
        assert data["pricing"]["total"] == 24000.0
        assert data["items"][0]["quantity"] == 2
        assert data["unavailable"] == [{"product_id": "ghost", "reason": "product_unavailable"}]
