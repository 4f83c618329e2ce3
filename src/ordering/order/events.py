"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout committed a new cash-on-delivery order."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier()
    order_type = String(required=True)
    restaurant_id = Identifier()
    item_count = Integer(required=True)
    grand_total = Float(required=True)
    currency = String(max_length=3)
    delivery_zone_name = String(max_length=255)
    placed_at = DateTime(required=True)
