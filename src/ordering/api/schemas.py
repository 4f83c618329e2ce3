"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands and aggregates.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    village_town: str | None = None
    landmark: str | None = None
    address_type: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Lakshmi",
                    "phone": "9876543210",
                    "street": "4-12 Temple Road",
                    "city": "Tirupati",
                    "state": "Andhra Pradesh",
                    "zip_code": "517501",
                    "village_town": "Renigunta",
                    "address_type": "home",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    user_id: str | None = None


class AddToCartRequest(BaseModel):
    product_id: str
    name: str
    price: float = Field(ge=0)
    order_type: Literal["food", "grocery"]
    quantity: int = Field(default=1, ge=1)
    restaurant_id: str | None = None
    category: str | None = None
    unit: str | None = None
    display_quantity: str | None = None
    stock_quantity: int | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "rice-5kg",
                    "name": "Sona Masoori Rice",
                    "price": 450.0,
                    "order_type": "grocery",
                    "quantity": 1,
                    "unit": "kg",
                    "display_quantity": "5 kg",
                    "stock_quantity": 12,
                }
            ]
        }
    }


class SetCartQuantityRequest(BaseModel):
    """A quantity of zero or less removes the item."""

    quantity: int


class CheckoutRequest(BaseModel):
    address: AddressSchema | None = None
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartIdResponse(BaseModel):
    cart_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class CheckoutResponse(BaseModel):
    order_id: str
    order: dict[str, Any]
    pricing: dict[str, Any]
    warning: dict[str, Any] | None = None


class CheckoutPreviewResponse(BaseModel):
    can_checkout: bool
    zone: dict[str, Any] | None = None
    pricing: dict[str, Any] | None = None
    min_order: dict[str, Any] | None = None
    reasons: list[str] = Field(default_factory=list)
    blocking: list[dict[str, Any]] = Field(default_factory=list)
    degraded: bool = False


class OrderListResponse(BaseModel):
    user_id: str
    orders: list[dict[str, Any]] = Field(default_factory=list)


class ZoneMatchResponse(BaseModel):
    available: bool
    zone_name: str
    delivery_time: str
    match_type: str
    zone: dict[str, Any] | None = None
