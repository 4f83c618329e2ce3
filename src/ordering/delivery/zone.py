"""Delivery zone value objects.

A ``DeliveryZone`` is a named service area with its own fees, minimum order
values and delivery time. Zones come from the settings document and are
immutable for the duration of a checkout.
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, List, String, ValueObject

from ordering.cart.cart import OrderType
from ordering.domain import ordering


class MatchType(Enum):
    EXACT = "exact"
    VILLAGE = "village"
    PINCODE = "pincode"
    CITY = "city"
    DEFAULT = "default"
    NONE = "none"


_ZONELESS_MATCHES = frozenset({MatchType.DEFAULT.value, MatchType.NONE.value})


@ordering.value_object
class DeliveryZone:
    """A delivery service area.

    Fees and minimums are optional; a missing value defers to the
    global setting for that order type.
    """

    name = String(required=True, max_length=255)
    zip_codes = List(content_type=String(max_length=20))
    delivery_fee_grocery = Float(min_value=0.0)
    delivery_fee_food = Float(min_value=0.0)
    min_order_grocery = Float(min_value=0.0)
    min_order_food = Float(min_value=0.0)
    delivery_time_estimate = String(max_length=50)
    is_active = Boolean(default=True)

    def serves_zip(self, zip_code) -> bool:
        return bool(zip_code) and str(zip_code) in (self.zip_codes or [])

    def fee_for(self, order_type):
        if OrderType(order_type) == OrderType.GROCERY:
            return self.delivery_fee_grocery
        return self.delivery_fee_food

    def min_order_for(self, order_type):
        if OrderType(order_type) == OrderType.GROCERY:
            return self.min_order_grocery
        return self.min_order_food

    @classmethod
    def from_document(cls, doc: dict) -> "DeliveryZone":
        """Build a zone from its camelCase settings-document form."""
        return cls(
            name=doc.get("name"),
            zip_codes=[str(z).strip() for z in (doc.get("zipCodes") or []) if str(z).strip()],
            delivery_fee_grocery=doc.get("deliveryFeeGrocery"),
            delivery_fee_food=doc.get("deliveryFeeFood"),
            min_order_grocery=doc.get("minOrderGrocery"),
            min_order_food=doc.get("minOrderFood"),
            delivery_time_estimate=doc.get("deliveryTimeEstimate") or doc.get("deliveryTime"),
            is_active=bool(doc.get("isActive", True)),
        )

    def to_document(self) -> dict:
        return {
            "name": self.name,
            "zipCodes": list(self.zip_codes or []),
            "deliveryFeeGrocery": self.delivery_fee_grocery,
            "deliveryFeeFood": self.delivery_fee_food,
            "minOrderGrocery": self.min_order_grocery,
            "minOrderFood": self.min_order_food,
            "deliveryTimeEstimate": self.delivery_time_estimate,
            "isActive": self.is_active,
        }


@ordering.value_object
class ZoneMatch:
    """Outcome of zone resolution: the matched zone and how it was matched."""

    zone = ValueObject(DeliveryZone)
    match_type = String(required=True, choices=MatchType)

    @invariant.post
    def zone_must_be_present_only_for_real_matches(self):
        if (self.zone is None) != (self.match_type in _ZONELESS_MATCHES):
            raise ValidationError(
                {"zone": [f"Match type '{self.match_type}' is inconsistent with zone presence"]}
            )

    @classmethod
    def none(cls) -> "ZoneMatch":
        return cls(zone=None, match_type=MatchType.NONE.value)

    @classmethod
    def default(cls) -> "ZoneMatch":
        return cls(zone=None, match_type=MatchType.DEFAULT.value)

    @property
    def matched(self) -> bool:
        return self.zone is not None
