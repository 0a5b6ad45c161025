"""HTTP tests for the order endpoints."""

import pytest

from tests.factories import make_order_input, make_shipping


@pytest.fixture()
def order(client, catalogue):
    payload = make_order_input(catalogue.variant()).model_dump(mode="json")
    response = client.post("/orders", json=payload)
    assert response.status_code == 201
    return response.json()


class TestOrderEndpoints:
    def test_create(self, order, notifications):
        assert order["total"] == 115
        assert order["status"] == "pending_payment"
        assert order["order_number"].startswith("ON-")
        assert [o.id for o in notifications.sent] == [order["id"]]

    def test_create_without_items(self, client):
        payload = make_order_input(items=[]).model_dump(mode="json")

        response = client.post("/orders", json=payload)

        assert response.status_code == 422
        assert response.json()["detail"]["message"] == "Order must have at least one item"

    def test_get(self, client, order):
        assert client.get(f"/orders/{order['id']}").json()["id"] == order["id"]

    def test_get_missing(self, client):
        assert client.get("/orders/no-such-order").status_code == 404

    def test_list_by_user(self, client, order):
        response = client.get("/orders", params={"user_id": "user-1"})
        assert [o["id"] for o in response.json()] == [order["id"]]

    def test_list_by_status(self, client, order):
        response = client.get("/orders", params={"status": "pending_payment"})
        assert [o["id"] for o in response.json()] == [order["id"]]

    def test_list_needs_a_filter(self, client):
        assert client.get("/orders").status_code == 422

    def test_status_change_and_history(self, client, order):
        response = client.post(f"/orders/{order['id']}/status", json={"status": "paid", "note": "Captured"})
        assert response.json()["status"] == "paid"

        history = client.get(f"/orders/{order['id']}/history").json()
        assert [h["status"] for h in history] == ["paid", "pending_payment"]

    def test_invalid_transition(self, client, order):
        client.post(f"/orders/{order['id']}/status", json={"status": "cancelled"})

        response = client.post(f"/orders/{order['id']}/status", json={"status": "paid"})

        assert response.status_code == 409
        assert response.json()["detail"]["current"] == "cancelled"

    def test_payment_and_refund(self, client, order):
        client.post(f"/orders/{order['id']}/status", json={"status": "paid"})
        payment = client.post(
            f"/orders/{order['id']}/payments",
            json={"amount": 115, "method": "card", "status": "succeeded"},
        )
        assert payment.status_code == 201
        assert len(client.get(f"/orders/{order['id']}/payments").json()) == 1

        refund = client.post(
            f"/orders/{order['id']}/refunds",
            json={"transaction_id": payment.json()["id"], "amount": 115, "reason": "Damaged"},
        )

        assert refund.status_code == 201
        assert client.get(f"/orders/{order['id']}").json()["status"] == "refunded"
        assert [r["amount"] for r in client.get(f"/orders/{order['id']}/refunds").json()] == [115]


class TestCheckout:
    def test_from_cart(self, client, catalogue):
        variant = catalogue.variant(price=2500)
        cart_id = client.post("/carts", headers={"X-Session-Id": "sess-1", "X-User-Id": "user-1"}).json()["id"]
        client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id, "quantity": 2})

        response = client.post(
            f"/orders/from-cart/{cart_id}",
            json={"shipping": make_shipping(amount=500).model_dump(mode="json"), "tax_amount": 0},
        )

        assert response.status_code == 201
        assert response.json()["total"] == 5500
        assert client.get(f"/carts/{cart_id}").json()["status"] == "converted_to_order"

        again = client.post(
            f"/orders/from-cart/{cart_id}",
            json={"shipping": make_shipping(amount=500).model_dump(mode="json")},
        )
        assert again.status_code == 400
