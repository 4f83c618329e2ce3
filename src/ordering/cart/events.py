"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart (or its quantity increased)."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_type = String(required=True)
    quantity = Integer(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """An item was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    total_amount = Float(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """All items were dropped from the cart.

    ``reason`` is one of ``manual``, ``order_type_switched``,
    ``restaurant_switched`` or ``checked_out``.
    """

    __version__ = 1

    cart_id = Identifier(required=True)
    reason = String(required=True, max_length=50)
    items_cleared = Integer(required=True)
