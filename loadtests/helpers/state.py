"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class CartState:
    """Tracks state for a shopping cart lifecycle."""

    cart_id: str | None = None
    user_id: str | None = None
    order_type: str = "grocery"
    product_ids: list[str] = field(default_factory=list)
    item_count: int = 0


@dataclass
class CheckoutState:
    """Tracks state for a cart-to-order checkout."""

    cart_id: str | None = None
    user_id: str | None = None
    order_id: str | None = None
    order_type: str = "grocery"
    product_ids: list[str] = field(default_factory=list)
    can_checkout: bool = False
    warning: str | None = None
