"""Minimum order policy — blocks checkout below a per-order-type floor."""

from protean.fields import Boolean, Float, String

from ordering.cart.cart import OrderType
from ordering.domain import ordering


@ordering.value_object
class MinOrderValidation:
    valid = Boolean(required=True)
    is_enabled = Boolean(required=True)
    min_value = Float(default=0.0, min_value=0.0)
    current_value = Float(default=0.0, min_value=0.0)
    short_by = Float(default=0.0, min_value=0.0)
    message = String(max_length=500, default="")

    def to_document(self) -> dict:
        return {
            "valid": self.valid,
            "isEnabled": self.is_enabled,
            "minValue": self.min_value,
            "currentValue": self.current_value,
            "shortBy": self.short_by,
            "message": self.message or "",
        }


def _format_amount(amount: float) -> str:
    return f"₹{amount:.2f}"


class MinimumOrderValidator:
    """Decides whether a cart's items total clears the minimum order value.

    Stateless: results are recomputed whenever the total, zone or settings
    change, and never cached.
    """

    def validate(
        self,
        order_type,
        items_total,
        is_food_min_enabled,
        is_grocery_min_enabled,
        food_min_value,
        grocery_min_value,
    ) -> MinOrderValidation:
        is_grocery = OrderType(order_type) == OrderType.GROCERY
        enabled = is_grocery_min_enabled if is_grocery else is_food_min_enabled
        min_value = grocery_min_value if is_grocery else food_min_value

        if not enabled:
            return MinOrderValidation(
                valid=True,
                is_enabled=False,
                min_value=0.0,
                current_value=items_total,
                short_by=0.0,
                message="",
            )

        min_value = min_value or 0.0
        short_by = max(0.0, min_value - items_total)
        valid = items_total >= min_value
        message = ""
        if not valid:
            message = (
                f"Minimum order for {OrderType(order_type).value} is {_format_amount(min_value)}. "
                f"Add {_format_amount(short_by)} more to place your order."
            )

        return MinOrderValidation(
            valid=valid,
            is_enabled=True,
            min_value=min_value,
            current_value=items_total,
            short_by=short_by,
            message=message,
        )

    def validate_for_zone(self, order_type, items_total, settings, zone_match=None) -> MinOrderValidation:
        """Validate with the matched zone's threshold, or the global default.

        The enabled flags always come from the global settings.
        """
        food_min = settings.food_min_order_value
        grocery_min = settings.grocery_min_order_value
        if zone_match is not None and zone_match.zone is not None:
            zone = zone_match.zone
            if zone.min_order_food is not None:
                food_min = zone.min_order_food
            if zone.min_order_grocery is not None:
                grocery_min = zone.min_order_grocery

        return self.validate(
            order_type,
            items_total,
            is_food_min_enabled=settings.is_food_min_order_enabled,
            is_grocery_min_enabled=settings.is_grocery_min_order_enabled,
            food_min_value=food_min,
            grocery_min_value=grocery_min,
        )
