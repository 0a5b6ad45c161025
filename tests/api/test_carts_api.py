"""HTTP tests for the cart endpoints."""

import pytest

SESSION = {"X-Session-Id": "sess-api"}


@pytest.fixture()
def cart_id(client):
    return client.post("/carts", headers=SESSION).json()["id"]


class TestCartEndpoints:
    def test_get_or_create(self, client):
        first = client.post("/carts", headers=SESSION)
        second = client.post("/carts", headers=SESSION)

        assert first.status_code == 200
        assert first.json()["status"] == "active"
        assert second.json()["id"] == first.json()["id"]

    def test_session_header_required(self, client):
        assert client.post("/carts").status_code == 422

    def test_get_cart(self, client, cart_id):
        response = client.get(f"/carts/{cart_id}")
        assert response.status_code == 200
        assert response.json()["item_count"] == 0

    def test_unknown_cart(self, client):
        response = client.get("/carts/no-such-cart")
        assert response.status_code == 404
        assert response.json()["detail"]["message"] == "Cart not found"

    def test_add_item(self, client, catalogue, cart_id):
        variant = catalogue.variant(price=2500)

        response = client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id, "quantity": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["subtotal"] == 5000
        assert body["items"][0]["quantity"] == 2

    def test_add_item_over_stock(self, client, catalogue, cart_id):
        variant = catalogue.variant(stock=1)

        response = client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id, "quantity": 2})

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["requested"] == 2
        assert detail["available"] == 1

    def test_add_unknown_variant(self, client, cart_id):
        response = client.post(f"/carts/{cart_id}/items", json={"variant_id": "nope", "quantity": 1})
        assert response.status_code == 404

    def test_add_zero_quantity(self, client, catalogue, cart_id):
        variant = catalogue.variant()
        response = client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id, "quantity": 0})
        assert response.status_code == 422

    def test_update_and_remove_item(self, client, catalogue, cart_id):
        variant = catalogue.variant(price=1000)
        item_id = client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id}).json()["items"][0]["id"]

        updated = client.patch(f"/carts/items/{item_id}", json={"quantity": 3})
        assert updated.json()["subtotal"] == 3000

        assert client.delete(f"/carts/items/{item_id}").json()["items"] == []
        assert client.delete(f"/carts/items/{item_id}").status_code == 404

    def test_clear(self, client, catalogue, cart_id):
        variant = catalogue.variant()
        client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id})

        response = client.delete(f"/carts/{cart_id}/items")

        assert response.json()["item_count"] == 0

    def test_discount(self, client, catalogue, cart_id):
        variant = catalogue.variant(price=10000)
        catalogue.discount("SAVE10", value=10)
        client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id})

        applied = client.post(f"/carts/{cart_id}/discount", json={"code": "SAVE10"})
        assert applied.json()["discount_amount"] == 1000
        assert applied.json()["total"] == 9000

        removed = client.delete(f"/carts/{cart_id}/discount")
        assert removed.json()["discount_code"] is None

    def test_unknown_discount(self, client, cart_id):
        response = client.post(f"/carts/{cart_id}/discount", json={"code": "NOPE"})
        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "not_found"

    def test_merge(self, client, cart_id):
        response = client.post("/carts/merge", json={"session_id": "sess-api", "user_id": "user-1"})
        assert response.status_code == 200
        assert response.json()["id"] == cart_id
        assert response.json()["user_id"] == "user-1"

    def test_summary(self, client, catalogue, cart_id):
        variant = catalogue.variant(price=1200)
        client.post(f"/carts/{cart_id}/items", json={"variant_id": variant.id, "quantity": 2})

        response = client.get("/carts/summary", headers=SESSION)

        assert response.json() == {"subtotal": 2400, "discount_amount": 0, "total": 2400, "item_count": 2}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
