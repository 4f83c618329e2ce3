"""Ordering domain API package."""

from ordering.api.routes import cart_router, delivery_router, order_router

__all__ = ["cart_router", "delivery_router", "order_router"]
