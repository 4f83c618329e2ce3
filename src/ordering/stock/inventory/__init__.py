"""Inventory adapter abstraction — pluggable stock counter store."""

import os

_inventory_instance = None


def get_inventory():
    """Return the configured inventory adapter (singleton).

    Uses FakeInventory by default. In production, configure via
    INVENTORY_ADAPTER environment variable.
    """
    global _inventory_instance
    if _inventory_instance is None:
        adapter = os.environ.get("INVENTORY_ADAPTER", "fake")
        if adapter == "fake":
            from ordering.stock.inventory.fake_adapter import FakeInventory

            _inventory_instance = FakeInventory()
        else:
            raise ValueError(f"Unknown inventory adapter: {adapter}")
    return _inventory_instance


def reset_inventory():
    """Reset the inventory singleton (useful for testing)."""
    global _inventory_instance
    _inventory_instance = None
