"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that match the exact field names expected
by the API's Pydantic request schemas. Addresses fall inside the zones of
``loadtests/delivery_settings.json`` unless asked otherwise.
"""

import random
import uuid

from faker import Faker

fake = Faker("en_IN")

SERVICED_ZIP_CODES = ["517501", "517502", "517520"]
UNSERVICED_ZIP_CODES = ["560001", "600001", "500001"]

GROCERY_CATALOGUE = [
    ("Sona Masoori Rice", "Staples", "kg", "5 kg", 450.0),
    ("Toor Dal", "Staples", "kg", "1 kg", 160.0),
    ("Groundnut Oil", "Oils", "l", "1 l", 210.0),
    ("Curd", "Dairy", "g", "500 g", 45.0),
    ("Tomatoes", "Vegetables", "kg", "1 kg", 40.0),
    ("Onions", "Vegetables", "kg", "1 kg", 35.0),
]

FOOD_MENU = [
    ("Masala Dosa", "Tiffins", 70.0),
    ("Idli Vada", "Tiffins", 55.0),
    ("Veg Biryani", "Rice", 180.0),
    ("Paneer Butter Masala", "Curries", 220.0),
    ("Filter Coffee", "Beverages", 30.0),
]


def valid_phone() -> str:
    """Generate a ten-digit Indian mobile number."""
    return f"{random.choice('6789')}{random.randint(0, 999_999_999):09d}"


def cart_data(user_id: str | None = None) -> dict:
    """Generate CreateCartRequest payload."""
    return {
        "user_id": user_id or f"user-{uuid.uuid4().hex[:8]}",
    }


def grocery_item_data(stock_quantity: int | None = None) -> dict:
    """Generate AddToCartRequest payload for a stocked grocery product."""
    name, category, unit, display_quantity, price = random.choice(GROCERY_CATALOGUE)
    return {
        "product_id": f"groc-{uuid.uuid4().hex[:8]}",
        "name": name,
        "price": price,
        "order_type": "grocery",
        "quantity": random.randint(1, 3),
        "category": category,
        "unit": unit,
        "display_quantity": display_quantity,
        "stock_quantity": stock_quantity if stock_quantity is not None else random.randint(10, 50),
    }


def food_item_data(restaurant_id: str) -> dict:
    """Generate AddToCartRequest payload for a restaurant menu item."""
    name, category, price = random.choice(FOOD_MENU)
    return {
        "product_id": f"food-{uuid.uuid4().hex[:8]}",
        "name": name,
        "price": price,
        "order_type": "food",
        "quantity": random.randint(1, 2),
        "restaurant_id": restaurant_id,
        "category": category,
    }


def delivery_address(zip_code: str | None = None, complete: bool = True) -> dict:
    """Generate AddressSchema payload.

    ``complete=False`` drops the phone number, which fails address validation.
    """
    address = {
        "name": fake.name()[:100],
        "phone": valid_phone(),
        "street": fake.street_address()[:255],
        "city": "Tirupati",
        "state": "Andhra Pradesh",
        "zip_code": zip_code or random.choice(SERVICED_ZIP_CODES),
        "landmark": f"Near {fake.word().capitalize()} Temple",
        "address_type": random.choice(["home", "work"]),
    }
    if not complete:
        address.pop("phone")
    return address


def checkout_data(zip_code: str | None = None, complete: bool = True) -> dict:
    """Generate CheckoutRequest payload."""
    return {"address": delivery_address(zip_code=zip_code, complete=complete)}


def zone_query() -> dict:
    """Query parameters for the zone lookup, mostly serviced pincodes."""
    if random.random() < 0.8:
        return {"zip_code": random.choice(SERVICED_ZIP_CODES)}
    return {"zip_code": random.choice(UNSERVICED_ZIP_CODES)}
