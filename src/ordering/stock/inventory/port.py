"""Inventory port — abstract interface for per-item stock counters.

Stock is read and written per product id. Writes are conditional: a write
only lands if the stored value still equals the value the caller last read.
"""

from abc import ABC, abstractmethod


class InventoryPort(ABC):
    """Abstract interface for inventory adapters."""

    @abstractmethod
    async def get_stock(self, product_id: str) -> int | None:
        """Read the current stock for a product.

        Returns:
            The stock count, or None when the product has no inventory record.
        """
        ...

    @abstractmethod
    async def set_stock(self, product_id: str, new_stock: int) -> None:
        """Unconditionally overwrite the stock for a product (restocking, admin tools)."""
        ...

    @abstractmethod
    async def compare_and_set(self, product_id: str, expected: int, new_stock: int) -> bool:
        """Write ``new_stock`` only if the stored stock still equals ``expected``.

        Returns:
            True if the write was applied, False if another writer got there first.
        """
        ...
