"""Ordering bounded context — Shopping Cart and Checkout.

Handles the food/grocery shopping cart, delivery zone resolution, pricing,
minimum-order policy, stock guarding, and the checkout pipeline that turns
a cart plus a delivery address into a committed order.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
