"""Ordering load test scenarios.

Stateful SequentialTaskSet journeys covering cart editing, grocery and
food checkouts, and checkouts that the decision engine is expected to
reject. Rejections with a 422 are counted as successes when the journey
asked for them.
"""

import random
import uuid

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    UNSERVICED_ZIP_CODES,
    cart_data,
    checkout_data,
    food_item_data,
    grocery_item_data,
    zone_query,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import CartState, CheckoutState


def _create_cart(task_set, state) -> None:
    payload = cart_data()
    state.user_id = payload["user_id"]
    with task_set.client.post(
        "/carts",
        json=payload,
        catch_response=True,
        name="POST /carts",
    ) as resp:
        if resp.status_code == 201:
            state.cart_id = resp.json()["cart_id"]
        else:
            resp.failure(f"Create cart failed: {resp.status_code} — {extract_error_detail(resp)}")
            task_set.interrupt()


def _add_item(task_set, state, payload: dict) -> None:
    with task_set.client.post(
        f"/carts/{state.cart_id}/items",
        json=payload,
        catch_response=True,
        name="POST /carts/{id}/items",
    ) as resp:
        if resp.status_code == 200:
            state.product_ids.append(payload["product_id"])
        else:
            resp.failure(f"Add cart item failed: {resp.status_code} — {extract_error_detail(resp)}")


class CartEditingJourney(SequentialTaskSet):
    """Create Cart -> Add Items -> Change Quantity -> Remove Item -> Clear.

    Models a browsing customer who fills a grocery cart and then changes
    their mind.
    """

    def on_start(self):
        self.state = CartState()

    @task
    def create_cart(self):
        _create_cart(self, self.state)

    @task
    def add_items(self):
        for _ in range(3):
            _add_item(self, self.state, grocery_item_data())
        self.state.item_count = len(self.state.product_ids)

    @task
    def change_quantity(self):
        if not self.state.product_ids:
            self.interrupt()
        product_id = random.choice(self.state.product_ids)
        with self.client.put(
            f"/carts/{self.state.cart_id}/items/{product_id}",
            json={"quantity": random.randint(2, 4)},
            catch_response=True,
            name="PUT /carts/{id}/items/{product_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Set quantity failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def remove_item(self):
        product_id = self.state.product_ids.pop()
        with self.client.delete(
            f"/carts/{self.state.cart_id}/items/{product_id}",
            catch_response=True,
            name="DELETE /carts/{id}/items/{product_id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.item_count -= 1
            else:
                resp.failure(f"Remove item failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def clear_cart(self):
        with self.client.put(
            f"/carts/{self.state.cart_id}/clear",
            catch_response=True,
            name="PUT /carts/{id}/clear",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Clear cart failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class GroceryCheckoutJourney(SequentialTaskSet):
    """Create Cart -> Add Groceries -> Preview -> Checkout -> Order History.

    The happy path: a cash-on-delivery grocery order to a serviced pincode,
    then a look at the order in the user's history.
    """

    def on_start(self):
        self.state = CheckoutState(order_type="grocery")

    @task
    def create_cart(self):
        _create_cart(self, self.state)

    @task
    def add_groceries(self):
        for _ in range(random.randint(2, 4)):
            _add_item(self, self.state, grocery_item_data())

    @task
    def preview(self):
        with self.client.post(
            f"/carts/{self.state.cart_id}/checkout/preview",
            json=checkout_data(),
            catch_response=True,
            name="POST /carts/{id}/checkout/preview",
        ) as resp:
            if resp.status_code == 200:
                self.state.can_checkout = resp.json()["can_checkout"]
            else:
                resp.failure(f"Preview failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout(self):
        if not self.state.can_checkout:
            self.interrupt()
        with self.client.post(
            f"/carts/{self.state.cart_id}/checkout",
            json=checkout_data(),
            catch_response=True,
            name="POST /carts/{id}/checkout",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                if body.get("warning"):
                    self.state.warning = body["warning"]["code"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def order_history(self):
        if self.state.order_id is None:
            self.interrupt()
        with self.client.get(
            "/orders",
            params={"user_id": self.state.user_id},
            catch_response=True,
            name="GET /orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Order history failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif self.state.order_id not in [order["id"] for order in resp.json()["orders"]]:
                resp.failure("Placed order missing from order history")

    @task
    def done(self):
        self.interrupt()


class FoodCheckoutJourney(SequentialTaskSet):
    """Create Cart -> Add Dishes From One Restaurant -> Checkout."""

    def on_start(self):
        self.state = CheckoutState(order_type="food")
        self.restaurant_id = f"rest-{uuid.uuid4().hex[:6]}"

    @task
    def create_cart(self):
        _create_cart(self, self.state)

    @task
    def add_dishes(self):
        for _ in range(random.randint(2, 3)):
            _add_item(self, self.state, food_item_data(self.restaurant_id))

    @task
    def checkout(self):
        with self.client.post(
            f"/carts/{self.state.cart_id}/checkout",
            json=checkout_data(),
            catch_response=True,
            name="POST /carts/{id}/checkout",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
            elif resp.status_code == 422:
                # A small food order may fall under the minimum order value
                resp.success()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class RejectedCheckoutJourney(SequentialTaskSet):
    """Checkouts the engine must refuse: unserviced pincode, incomplete address."""

    def on_start(self):
        self.state = CheckoutState()

    @task
    def create_cart(self):
        _create_cart(self, self.state)

    @task
    def add_groceries(self):
        for _ in range(2):
            _add_item(self, self.state, grocery_item_data())

    @task
    def checkout_outside_zones(self):
        self._expect_rejection(
            checkout_data(zip_code=random.choice(UNSERVICED_ZIP_CODES)),
            "delivery_unavailable",
        )

    @task
    def checkout_incomplete_address(self):
        self._expect_rejection(checkout_data(complete=False), "address_incomplete")

    @task
    def done(self):
        self.interrupt()

    def _expect_rejection(self, payload: dict, code: str):
        with self.client.post(
            f"/carts/{self.state.cart_id}/checkout",
            json=payload,
            catch_response=True,
            name="POST /carts/{id}/checkout [rejected]",
        ) as resp:
            if resp.status_code != 422:
                resp.failure(f"Expected 422 {code}, got {resp.status_code} — {extract_error_detail(resp)}")
            elif resp.json()["error"]["code"] != code:
                resp.failure(f"Expected {code}, got {extract_error_detail(resp)}")
            else:
                resp.success()


class OrderingUser(HttpUser):
    """Weighted mix of the ordering journeys plus zone lookups.

    - Grocery checkout: the dominant write path
    - Food checkout: lunch and dinner traffic
    - Cart editing: browsing without buying
    - Rejected checkout: bad addresses and out-of-zone pincodes
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        GroceryCheckoutJourney: 4,
        FoodCheckoutJourney: 3,
        CartEditingJourney: 2,
        RejectedCheckoutJourney: 1,
    }

    @task(2)
    def match_zone(self):
        with self.client.get(
            "/delivery/zones/match",
            params=zone_query(),
            catch_response=True,
            name="GET /delivery/zones/match",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Zone match failed: {resp.status_code} — {extract_error_detail(resp)}")
