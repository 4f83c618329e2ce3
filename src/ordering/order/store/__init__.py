"""Order store abstraction — pluggable persistence for committed orders."""

import os

_store_instance = None


def get_order_store():
    """Return the configured order store (singleton).

    Uses the domain's Order repository by default. Configure via the
    ORDER_STORE_ADAPTER environment variable (``repository`` or ``memory``).
    """
    global _store_instance
    if _store_instance is None:
        adapter = os.environ.get("ORDER_STORE_ADAPTER", "repository")
        if adapter == "repository":
            from ordering.order.store.repository_adapter import RepositoryOrderStore

            _store_instance = RepositoryOrderStore()
        elif adapter == "memory":
            from ordering.order.store.memory_adapter import InMemoryOrderStore

            _store_instance = InMemoryOrderStore()
        else:
            raise ValueError(f"Unknown order store adapter: {adapter}")
    return _store_instance


def reset_order_store():
    """Reset the order store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
