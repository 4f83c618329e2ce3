"""Access to the ``custom`` section of the ordering domain configuration."""

from typing import Any

from ordering.domain import ordering

_FALLBACKS = {
    "DEFAULT_DELIVERY_FEE_GROCERY": 20.0,
    "DEFAULT_DELIVERY_FEE_FOOD": 30.0,
    "DEFAULT_TAX_PERCENTAGE": 5.0,
    "DEFAULT_GROCERY_MIN_ORDER_VALUE": 100.0,
    "DEFAULT_FOOD_MIN_ORDER_VALUE": 50.0,
    "DEFAULT_GROCERY_MIN_ORDER_ENABLED": True,
    "DEFAULT_FOOD_MIN_ORDER_ENABLED": True,
    "DEFAULT_DELIVERY_TIME": "30-45 min",
    "DEFAULT_ZONE_NAME": "Standard Delivery",
    "CURRENCY": "INR",
    "COLLABORATOR_TIMEOUT_SECONDS": 5.0,
    "STOCK_CAS_MAX_ATTEMPTS": 3,
}


def setting(name: str, default: Any = None) -> Any:
    """Return a custom domain setting, falling back to the built-in value."""
    custom = ordering.config.get("custom") or {}
    if name in custom:
        return custom[name]
    if default is not None:
        return default
    return _FALLBACKS.get(name)
