"""Integration tests for checkout endpoints via TestClient."""

from ordering.cart.cart import Cart
from ordering.order.order import Order
from ordering.stock.inventory import get_inventory
from protean import current_domain

ADDRESS = {
    "name": "Lakshmi",
    "phone": "9876543210",
    "street": "4-12 Temple Road",
    "city": "Tirupati",
    "state": "Andhra Pradesh",
    "zip_code": "517501",
    "landmark": "",
}


def _grocery_cart(client, price=50.0, quantity=1, stock=1, user_id="user-001"):
    cart_id = client.post("/carts", json={"user_id": user_id}).json()["cart_id"]
    client.post(
        f"/carts/{cart_id}/items",
        json={
            "product_id": "a",
            "name": "Atta",
            "price": price,
            "order_type": "grocery",
            "quantity": quantity,
            "stock_quantity": stock,
        },
    )
    return cart_id


class TestCheckoutAPI:
    def test_successful_checkout(self, client):
        get_inventory().seed({"a": 1})
        cart_id = _grocery_cart(client)

        response = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS})

        assert response.status_code == 201
        body = response.json()
        assert body["pricing"]["grandTotal"] == 72.5
        assert body["order"]["status"] == "pending"
        assert body["order"]["paymentMethod"] == "COD"
        assert "landmark" not in body["order"]["deliveryAddress"]
        assert body["warning"] is None

    def test_order_is_persisted_and_cart_emptied(self, client):
        get_inventory().seed({"a": 1})
        cart_id = _grocery_cart(client)

        order_id = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS}).json()["order_id"]

        order = current_domain.repository_for(Order).get(order_id)
        assert order.pricing.grand_total == 72.5
        assert current_domain.repository_for(Cart).get(cart_id).is_empty
        assert get_inventory().levels["a"] == 0

    def test_validation_failure_is_422(self, client):
        cart_id = _grocery_cart(client, quantity=3, stock=2)

        response = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "out_of_stock"
        assert error["nextStep"] == "cart"
        assert len(current_domain.repository_for(Cart).get(cart_id).items) == 1

    def test_missing_address_is_422(self, client):
        cart_id = _grocery_cart(client)
        response = client.post(f"/carts/{cart_id}/checkout", json={})
        assert response.status_code == 422
        assert response.json()["error"]["nextStep"] == "address"

    def test_unserviceable_address(self, client):
        cart_id = _grocery_cart(client)
        address = {**ADDRESS, "zip_code": "600001", "city": "Chennai"}
        response = client.post(f"/carts/{cart_id}/checkout", json={"address": address})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "delivery_unavailable"

    def test_inventory_outage_is_503(self, client):
        get_inventory().seed({"a": 1})
        get_inventory().configure(should_succeed=False)
        cart_id = _grocery_cart(client)

        response = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS})

        assert response.status_code == 503
        assert response.json()["error"]["retryable"] is True


    def test_signed_out_cart_is_422(self, client):
        cart_id = _grocery_cart(client, stock=None, user_id=None)

        response = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "sign_in_required"
        assert response.json()["error"]["nextStep"] == "sign_in"

    def test_user_in_request_places_the_order(self, client):
        cart_id = _grocery_cart(client, stock=None, user_id=None)

        response = client.post(f"/carts/{cart_id}/checkout", json={"address": ADDRESS, "user_id": "user-777"})

        assert response.status_code == 201
        assert response.json()["order"]["userId"] == "user-777"


class TestCheckoutPreviewAPI:
    def test_preview(self, client):
        cart_id = _grocery_cart(client, price=30.0)

        response = client.post(f"/carts/{cart_id}/checkout/preview", json={"address": ADDRESS})

        assert response.status_code == 200
        body = response.json()
        assert body["can_checkout"] is False
        assert body["zone"]["name"] == "Tirupati"
        assert body["zone"]["matchType"] == "pincode"
        assert body["pricing"]["deliveryFee"] == 20.0
        assert body["min_order"]["shortBy"] == 20.0
        assert body["reasons"] == ["Minimum order for grocery is ₹50.00. Add ₹20.00 more to place your order."]

    def test_preview_keeps_cart(self, client):
        cart_id = _grocery_cart(client)
        client.post(f"/carts/{cart_id}/checkout/preview", json={"address": ADDRESS})
        assert len(current_domain.repository_for(Cart).get(cart_id).items) == 1


class TestOrderHistoryAPI:
    def test_lists_the_users_orders(self, client):
        get_inventory().seed({"a": 5})
        first = client.post(f"/carts/{_grocery_cart(client, stock=5)}/checkout", json={"address": ADDRESS}).json()
        client.post(
            f"/carts/{_grocery_cart(client, stock=5, user_id='user-002')}/checkout",
            json={"address": ADDRESS},
        )

        response = client.get("/orders", params={"user_id": "user-001"})

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == "user-001"
        assert [order["id"] for order in body["orders"]] == [first["order_id"]]

    def test_user_without_orders(self, client):
        response = client.get("/orders", params={"user_id": "user-404"})
        assert response.status_code == 200
        assert response.json()["orders"] == []

    def test_user_id_is_required(self, client):
        assert client.get("/orders").status_code == 422
