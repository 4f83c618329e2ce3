"""Order aggregate (CQRS) — the immutable record of a committed checkout.

An order is created exactly once, by the checkout pipeline, from a cart
snapshot. Prices, address and zone are copied in at commit time, so later
changes to the catalogue or delivery settings never alter a placed order.
Status transitions past ``pending`` belong to order tracking, not to this
context.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.cart.cart import OrderType
from ordering.domain import ordering
from ordering.order.events import OrderPlaced
from ordering.pricing.engine import PricingBreakdown
from ordering.utils.config import setting


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    COD = "COD"


ADDRESS_REQUIRED_FIELDS = ("name", "street", "city", "state", "zip_code", "phone")

# attribute name -> document key
_ADDRESS_KEYS = {
    "name": "name",
    "phone": "phone",
    "street": "street",
    "city": "city",
    "state": "state",
    "zip_code": "zipCode",
    "village_town": "villageTown",
    "landmark": "landmark",
    "address_type": "addressType",
}


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def strip_empty(doc: dict) -> dict:
    """Drop keys whose value is None or an empty string."""
    return {key: value for key, value in doc.items() if value is not None and value != ""}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A delivery address as selected at checkout.

    Every field is optional at construction; completeness is a checkout rule,
    checked with ``missing_fields()``.
    """

    name = String(max_length=100)
    phone = String(max_length=20)
    street = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    zip_code = String(max_length=20)
    village_town = String(max_length=100)
    landmark = String(max_length=255)
    address_type = String(max_length=50)

    @classmethod
    def from_document(cls, doc: dict) -> "Address":
        """Accepts camelCase document keys or snake_case attribute names."""
        values = {}
        for attr, key in _ADDRESS_KEYS.items():
            raw = doc.get(key, doc.get(attr))
            values[attr] = _blank_to_none(raw)
        return cls(**values)

    def cleaned(self) -> "Address":
        """Copy with blank strings normalised to None."""
        return self.replace(**{attr: _blank_to_none(getattr(self, attr)) for attr in _ADDRESS_KEYS})

    def missing_fields(self) -> list[str]:
        return [field for field in ADDRESS_REQUIRED_FIELDS if not _blank_to_none(getattr(self, field))]

    @property
    def has_location(self) -> bool:
        return any(_blank_to_none(v) for v in (self.zip_code, self.city, self.village_town))

    def to_document(self) -> dict:
        return strip_empty({key: _blank_to_none(getattr(self, attr)) for attr, key in _ADDRESS_KEYS.items()})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased product, frozen at the price and stock seen at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100)
    unit = String(max_length=50)
    display_quantity = String(max_length=50)
    stock_quantity = Integer()

    def to_document(self) -> dict:
        return strip_empty(
            {
                "id": str(self.product_id),
                "name": self.name,
                "price": self.price,
                "quantity": self.quantity,
                "category": _blank_to_none(self.category),
                "unit": _blank_to_none(self.unit),
                "displayQuantity": _blank_to_none(self.display_quantity),
                "stockQuantity": self.stock_quantity,
            }
        )


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    user_id = Identifier()
    order_type = String(required=True, choices=OrderType)
    restaurant_id = Identifier()
    items = HasMany(OrderItem)
    pricing = ValueObject(PricingBreakdown)
    delivery_address = ValueObject(Address)
    delivery_zone_name = String(max_length=255)
    delivery_time_estimate = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.COD.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def restaurant_binding_is_food_only(self):
        if self.restaurant_id is not None and self.order_type != OrderType.FOOD.value:
            raise ValidationError({"restaurant_id": ["Only food orders are placed with a restaurant"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, cart, address, pricing, zone_match=None, user_id=None):
        """Assemble a pending cash-on-delivery order from a cart snapshot."""
        now = datetime.now(UTC)
        zone = zone_match.zone if zone_match is not None else None

        items = [
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                category=_blank_to_none(item.category),
                unit=_blank_to_none(item.unit),
                display_quantity=_blank_to_none(item.display_quantity),
                stock_quantity=item.stock_quantity,
            )
            for item in cart.items
        ]

        order = cls(
            user_id=user_id or cart.user_id,
            order_type=cart.order_type,
            restaurant_id=cart.restaurant_id,
            items=items,
            pricing=pricing,
            delivery_address=address.cleaned(),
            delivery_zone_name=zone.name if zone is not None else setting("DEFAULT_ZONE_NAME"),
            delivery_time_estimate=(
                zone.delivery_time_estimate if zone is not None and zone.delivery_time_estimate
                else setting("DEFAULT_DELIVERY_TIME")
            ),
            status=OrderStatus.PENDING.value,
            payment_method=PaymentMethod.COD.value,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(order.user_id) if order.user_id else None,
                order_type=order.order_type,
                restaurant_id=str(order.restaurant_id) if order.restaurant_id else None,
                item_count=sum(item.quantity for item in items),
                grand_total=pricing.grand_total,
                currency=pricing.currency,
                delivery_zone_name=order.delivery_zone_name,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_document(self) -> dict:
        """The order document consumed by order tracking and support tooling."""
        return strip_empty(
            {
                "id": str(self.id),
                "userId": str(self.user_id) if self.user_id else None,
                "orderType": self.order_type,
                "type": self.order_type,
                "restaurantId": str(self.restaurant_id) if self.restaurant_id else None,
                "items": [item.to_document() for item in self.items],
                "totalAmount": self.pricing.items_total if self.pricing else None,
                "pricing": self.pricing.to_document() if self.pricing else None,
                "deliveryAddress": self.delivery_address.to_document() if self.delivery_address else None,
                "deliveryZoneName": self.delivery_zone_name,
                "deliveryTimeEstimate": self.delivery_time_estimate,
                "status": self.status,
                "paymentMethod": self.payment_method,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
                "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            }
        )
