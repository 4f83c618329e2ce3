"""Cart aggregate (CQRS) — the customer's in-progress food or grocery basket.

A cart holds items of a single order type. Food carts are additionally bound
to one restaurant. Adding an item of another type (or from another restaurant)
empties the cart first. ``total_amount`` is recomputed on every mutation and
guarded by an invariant, so it can never be stored stale.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from ordering.domain import ordering

_TOTAL_TOLERANCE = 1e-6


class OrderType(Enum):
    FOOD = "food"
    GROCERY = "grocery"


class ClearReason(Enum):
    MANUAL = "manual"
    ORDER_TYPE_SWITCHED = "order_type_switched"
    RESTAURANT_SWITCHED = "restaurant_switched"
    CHECKED_OUT = "checked_out"


def _parse_order_type(value) -> str:
    if not value:
        raise ValidationError({"order_type": ["Order type is required"]})
    try:
        return OrderType(value).value
    except ValueError:
        raise ValidationError({"order_type": [f"Unknown order type: {value}"]}) from None


@ordering.entity(part_of="Cart")
class CartItem:
    """A product line in the cart, with a snapshot of its price and stock."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    category = String(max_length=100)
    unit = String(max_length=50)
    display_quantity = String(max_length=50)
    stock_quantity = Integer()  # None means unlimited (food items)
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @property
    def is_stock_tracked(self) -> bool:
        return self.stock_quantity is not None


@ordering.aggregate
class Cart:
    user_id = Identifier()
    order_type = String(choices=OrderType)
    restaurant_id = Identifier()
    items = HasMany(CartItem)
    total_amount = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_amount_must_match_items(self):
        expected = sum(item.price * item.quantity for item in self.items)
        if abs((self.total_amount or 0.0) - expected) > _TOTAL_TOLERANCE:
            raise ValidationError({"total_amount": [f"Cart total {self.total_amount} does not match items {expected}"]})

    @invariant.post
    def empty_cart_must_be_unbound(self):
        if not self.items and (self.order_type is not None or self.restaurant_id is not None):
            raise ValidationError({"order_type": ["An empty cart cannot be bound to an order type or restaurant"]})

    @invariant.post
    def only_food_carts_are_bound_to_a_restaurant(self):
        if self.restaurant_id is not None and self.order_type != OrderType.FOOD.value:
            raise ValidationError({"restaurant_id": ["Only food carts can be bound to a restaurant"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None):
        now = datetime.now(UTC)
        return cls(user_id=user_id, total_amount=0.0, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def is_grocery(self) -> bool:
        return self.order_type == OrderType.GROCERY.value

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        product_id,
        name,
        price,
        order_type,
        quantity=1,
        restaurant_id=None,
        category=None,
        unit=None,
        display_quantity=None,
        stock_quantity=None,
    ):
        """Add an item to the cart, or increase its quantity if already present.

        Switching order type, or restaurant for food carts, empties the cart
        before the new item goes in.
        """
        order_type = _parse_order_type(order_type)
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if order_type == OrderType.FOOD.value:
            if not restaurant_id:
                raise ValidationError({"restaurant_id": ["Food items must belong to a restaurant"]})
        else:
            restaurant_id = None

        with atomic_change(self):
            if self.items and self.order_type != order_type:
                self._drop_all_items(ClearReason.ORDER_TYPE_SWITCHED)
            elif self.items and order_type == OrderType.FOOD.value and str(self.restaurant_id) != str(restaurant_id):
                self._drop_all_items(ClearReason.RESTAURANT_SWITCHED)

            now = datetime.now(UTC)
            existing = self.find_item(product_id)
            if existing:
                existing.quantity += quantity
                if stock_quantity is not None:
                    existing.stock_quantity = stock_quantity
            else:
                self.add_items(
                    CartItem(
                        product_id=product_id,
                        name=name,
                        price=price,
                        quantity=quantity,
                        category=category,
                        unit=unit,
                        display_quantity=display_quantity,
                        stock_quantity=stock_quantity,
                        added_at=now,
                    )
                )

            self.order_type = order_type
            self.restaurant_id = restaurant_id
            self._recalculate_total()
            self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                order_type=order_type,
                quantity=quantity,
                total_amount=self.total_amount,
            )
        )

    def set_quantity(self, product_id, quantity):
        """Set an item's quantity. Zero or less removes the item."""
        if quantity <= 0:
            self.remove_item(product_id)
            return

        item = self.find_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = quantity
            self._recalculate_total()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                total_amount=self.total_amount,
            )
        )

    def remove_item(self, product_id):
        """Remove an item from the cart."""
        item = self.find_item(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Item not found in cart"]})

        with atomic_change(self):
            self.remove_items(item)
            if not self.items:
                self.order_type = None
                self.restaurant_id = None
            self._recalculate_total()
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                total_amount=self.total_amount,
            )
        )

    def clear(self, reason=ClearReason.MANUAL):
        """Empty the cart and release its order type and restaurant binding."""
        with atomic_change(self):
            self._drop_all_items(reason)
            self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _drop_all_items(self, reason):
        count = len(self.items)
        if count:
            self.remove_items(list(self.items))
        self.order_type = None
        self.restaurant_id = None
        self.total_amount = 0.0

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                reason=ClearReason(reason).value,
                items_cleared=count,
            )
        )

    def _recalculate_total(self):
        self.total_amount = sum(item.price * item.quantity for item in self.items)
