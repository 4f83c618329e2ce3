"""Delivery settings — the configuration document that drives checkout policy.

The document is fetched from the settings store on every checkout. Stored
values are merged over the built-in defaults one value and one zone at a
time, and any failure to fetch the document degrades to the defaults
instead of failing the checkout.
"""

import asyncio
import math

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, List, ValueObject

from ordering.cart.cart import OrderType
from ordering.delivery.zone import DeliveryZone
from ordering.domain import ordering
from ordering.utils.config import setting

logger = structlog.get_logger(__name__)

# camelCase document key -> attribute name
_DOCUMENT_KEYS = {
    "deliveryFeeGrocery": "delivery_fee_grocery",
    "deliveryFeeFood": "delivery_fee_food",
    "taxPercentage": "tax_percentage",
    "groceryMinOrderValue": "grocery_min_order_value",
    "foodMinOrderValue": "food_min_order_value",
    "isGroceryMinOrderEnabled": "is_grocery_min_order_enabled",
    "isFoodMinOrderEnabled": "is_food_min_order_enabled",
}


def checkout_defaults() -> dict:
    """Default settings document, taken from the domain's custom config."""
    return {
        "deliveryZones": [],
        "deliveryFeeGrocery": float(setting("DEFAULT_DELIVERY_FEE_GROCERY")),
        "deliveryFeeFood": float(setting("DEFAULT_DELIVERY_FEE_FOOD")),
        "taxPercentage": float(setting("DEFAULT_TAX_PERCENTAGE")),
        "groceryMinOrderValue": float(setting("DEFAULT_GROCERY_MIN_ORDER_VALUE")),
        "foodMinOrderValue": float(setting("DEFAULT_FOOD_MIN_ORDER_VALUE")),
        "isGroceryMinOrderEnabled": bool(setting("DEFAULT_GROCERY_MIN_ORDER_ENABLED")),
        "isFoodMinOrderEnabled": bool(setting("DEFAULT_FOOD_MIN_ORDER_ENABLED")),
    }


def _clean_amount(raw) -> float | None:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _clean_flag(raw) -> bool | None:
    return raw if isinstance(raw, bool) else None


def _zones_from(raw, problems: list[str]) -> list[DeliveryZone]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        problems.append("deliveryZones: expected a list")
        return []

    zones = []
    for index, zone_doc in enumerate(raw):
        if not isinstance(zone_doc, dict):
            problems.append(f"deliveryZones[{index}]: expected an object")
            continue
        try:
            zones.append(DeliveryZone.from_document(zone_doc))
        except (ValidationError, TypeError, ValueError) as exc:
            problems.append(f"deliveryZones[{index}] ({zone_doc.get('name') or 'unnamed'}): {exc}")
    return zones


@ordering.value_object
class DeliverySettings:
    """Global delivery policy plus the ordered list of delivery zones.

    Zone order is significant: zone resolution returns the first zone
    that satisfies a tier, in the order zones appear here.
    """

    delivery_zones = List(content_type=ValueObject(DeliveryZone))
    delivery_fee_grocery = Float(required=True, min_value=0.0)
    delivery_fee_food = Float(required=True, min_value=0.0)
    tax_percentage = Float(min_value=0.0)
    grocery_min_order_value = Float(required=True, min_value=0.0)
    food_min_order_value = Float(required=True, min_value=0.0)
    is_grocery_min_order_enabled = Boolean(default=True)
    is_food_min_order_enabled = Boolean(default=True)

    @classmethod
    def fallback(cls) -> "DeliverySettings":
        return cls.from_document({})

    @classmethod
    def from_document(cls, doc: dict | None, problems: list[str] | None = None) -> "DeliverySettings":
        """Merge a stored settings document over the defaults.

        Values are checked one at a time. A missing or null value takes its
        default. An invalid value also takes its default, and an invalid
        zone is dropped; both are described in ``problems`` so the caller
        can report the document as degraded. Valid zones are always kept.
        """
        problems = problems if problems is not None else []
        defaults = checkout_defaults()
        doc = doc or {}

        values = {}
        for key, attr in _DOCUMENT_KEYS.items():
            raw = doc.get(key)
            if raw is None:
                values[attr] = defaults[key]
                continue
            cleaned = _clean_flag(raw) if key.startswith("is") else _clean_amount(raw)
            if cleaned is None:
                problems.append(f"{key}: invalid value {raw!r}")
                values[attr] = defaults[key]
            else:
                values[attr] = cleaned

        return cls(delivery_zones=_zones_from(doc.get("deliveryZones"), problems), **values)

    @property
    def effective_tax_percentage(self) -> float:
        if self.tax_percentage is None:
            return float(setting("DEFAULT_TAX_PERCENTAGE"))
        return self.tax_percentage

    def active_zones(self) -> list[DeliveryZone]:
        return [zone for zone in self.delivery_zones or [] if zone.is_active]

    def fee_for(self, order_type) -> float:
        if OrderType(order_type) == OrderType.GROCERY:
            return self.delivery_fee_grocery
        return self.delivery_fee_food

    def min_order_for(self, order_type) -> float:
        if OrderType(order_type) == OrderType.GROCERY:
            return self.grocery_min_order_value
        return self.food_min_order_value

    def min_order_enabled_for(self, order_type) -> bool:
        if OrderType(order_type) == OrderType.GROCERY:
            return bool(self.is_grocery_min_order_enabled)
        return bool(self.is_food_min_order_enabled)


async def load_settings(store, timeout: float | None = None) -> tuple[DeliverySettings, bool]:
    """Fetch settings from the store.

    Returns:
        ``(settings, degraded)``. ``degraded`` is True when the store could
        not be read, or returned a document with unusable values, and
        defaults were used for some or all of it.
    """
    timeout = timeout if timeout is not None else float(setting("COLLABORATOR_TIMEOUT_SECONDS"))
    try:
        doc = await asyncio.wait_for(store.fetch(), timeout=timeout)
    except Exception as exc:
        logger.warning("settings_unavailable", reason=str(exc) or type(exc).__name__)
        return DeliverySettings.fallback(), True

    if doc is None:
        logger.info("settings_not_found_using_defaults")
        return DeliverySettings.fallback(), False

    if not isinstance(doc, dict):
        logger.warning("settings_document_invalid", error=f"expected an object, got {type(doc).__name__}")
        return DeliverySettings.fallback(), True

    problems = []
    settings = DeliverySettings.from_document(doc, problems=problems)
    if problems:
        logger.warning("settings_document_partially_invalid", problems=problems)
    return settings, bool(problems)
